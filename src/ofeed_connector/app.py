"""
Main OFeed Connector application.

Orchestrates all components:
- Configuration
- Results relay (SI-Droid Event -> OFeed)
- REST API server
"""

import signal
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from ofeed_connector import __version__
from ofeed_connector.config import Config
from ofeed_connector.diagnostics import StatusListener
from ofeed_connector.http.ping import ping
from ofeed_connector.relay import ResultsRelay

logger = logging.getLogger(__name__)

USER_AGENT = f"OFeed Connector/{__version__}"


class ConnectorApp:
    """
    Main application class.

    Manages the lifecycle of the results relay and provides unified
    access to its status and logs.
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Config] = None):
        """
        Initialize OFeed Connector application.

        Args:
            config_path: Optional path to configuration file
            config: Configuration object, used instead of loading from file
        """
        self.config_path = config_path
        self.config = config or Config.load(config_path)

        self.relay: Optional[ResultsRelay] = None
        self.api_server = None

        self._listener: Optional[StatusListener] = None
        self._lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._running = False

    def _setup_logging(self) -> None:
        """Configure logging based on mode."""
        if self.config.production_mode:
            # Production: minimal logging
            logging.basicConfig(
                level=logging.INFO,
                format="%(levelname)s - %(message)s",
                handlers=[logging.StreamHandler(sys.stdout)]
            )
        else:
            # Development: full logging to file
            log_dir = Path.home() / ".local" / "state" / "ofeed-connector"
            log_dir.mkdir(parents=True, exist_ok=True)

            logging.basicConfig(
                level=logging.DEBUG,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                handlers=[
                    logging.StreamHandler(sys.stdout),
                    logging.FileHandler(log_dir / "ofeed_connector.log"),
                ]
            )

    def _signal_handler(self, signum, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.shutdown()
        sys.exit(0)

    # =========================================================================
    # Relay lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        relay = self.relay
        return relay is not None and relay.is_running

    def start_relay(self, config: Optional[Config] = None) -> Dict[str, Any]:
        """
        Start relaying results with the given (or current) configuration.

        Returns:
            Result dict with success status
        """
        with self._lock:
            if config is not None:
                self.config = config

            if self.relay is not None and self.relay.is_running:
                return {"success": False, "error": "Relay already running"}

            errors = self.config.validate()
            if errors:
                logger.warning(f"Not starting relay, invalid settings: {errors}")
                return {"success": False, "error": "Invalid settings", "errors": errors}

            if self.relay is not None:
                self.relay.close(timeout=0)

            relay = ResultsRelay(
                self.config.to_relay_config(USER_AGENT),
                listener=self._listener,
            )
            relay.start()
            self.relay = relay

        return {"success": True, "message": "Relay started"}

    def stop_relay(self) -> Dict[str, Any]:
        """Stop relaying. Logs and latest status remain readable."""
        with self._lock:
            relay = self.relay

        if relay is None or not relay.is_running:
            return {"success": False, "error": "Relay not running"}

        relay.stop()
        return {"success": True, "message": "Relay stopped"}

    def bind(self, listener: StatusListener) -> None:
        """Attach a status listener to the current and future relays."""
        with self._lock:
            self._listener = listener
            relay = self.relay
        if relay is not None:
            relay.bind(listener)

    def unbind(self) -> None:
        """Detach the status listener."""
        with self._lock:
            self._listener = None
            relay = self.relay
        if relay is not None:
            relay.unbind()

    # =========================================================================
    # Read surface
    # =========================================================================

    def latest_status(self) -> str:
        """Most recent status, prefixed "S" (success) or "F" (failure)."""
        relay = self.relay
        return relay.latest_status() if relay else ""

    def application_log(self) -> str:
        relay = self.relay
        return relay.application_log() if relay else ""

    def wire_log(self) -> str:
        relay = self.relay
        return relay.wire_log() if relay else ""

    def ping_source(self) -> bool:
        """Check whether SI-Droid Event answers on the configured port."""
        return ping(self.config.source.ping_url, USER_AGENT)

    def get_status(self) -> Dict[str, Any]:
        """Get application status."""
        relay = self.relay
        errors = self.config.validate()
        return {
            "version": __version__,
            "configured": not errors,
            "errors": errors,
            "running": self.is_running,
            "latest_status": self.latest_status(),
            "relay": relay.get_status() if relay else None,
        }

    def update_config(self, data: Dict[str, Any], save: bool = True) -> Dict[str, Any]:
        """
        Update settings. A running relay is stopped first.

        Returns:
            Result dict with validation errors, if any

        Raises:
            ValueError: If a value has the wrong type; nothing is changed
        """
        with self._lock:
            self.config.update_from_dict(data)

        self.stop_relay()

        with self._lock:
            errors = self.config.validate()
            if save:
                self.config.save(self.config_path)

        return {"success": True, "errors": errors}

    # =========================================================================
    # Application lifecycle
    # =========================================================================

    def initialize(self) -> bool:
        """
        Initialize all components.

        Returns:
            True if initialization successful
        """
        try:
            logger.info("Initializing components...")

            if self.config.api.enabled:
                from ofeed_connector.api import APIServer

                self.api_server = APIServer(
                    self,
                    host=self.config.api.host,
                    port=self.config.api.port
                )
                logger.info("API server initialized")

            if not self.ping_source():
                logger.warning(
                    f"SI-Droid Event not reachable at {self.config.source.ping_url}"
                )

            result = self.start_relay()
            if not result["success"]:
                logger.warning(f"Relay not started: {result.get('errors') or result.get('error')}")

            logger.info("All components initialized successfully")
            return True

        except Exception as e:
            logger.error(f"Initialization failed: {e}")
            return False

    def run(self) -> None:
        """
        Start the application.

        Blocks until shutdown is requested.
        """
        self._setup_logging()
        logger.info(f"OFeed Connector {__version__} starting")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        if not self.initialize():
            logger.error("Failed to initialize, exiting")
            sys.exit(1)

        self._running = True

        try:
            if self.api_server:
                logger.info(f"Starting web server on port {self.config.api.port}")
                self.api_server.run(debug=not self.config.production_mode)
            else:
                self._shutdown_event.wait()
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Gracefully shutdown all components."""
        if not self._running:
            return

        self._running = False
        logger.info("Shutting down OFeed Connector...")

        relay = self.relay
        if relay is not None:
            relay.close()

        self._shutdown_event.set()
        logger.info("Shutdown complete")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="OFeed Connector for SI-Droid Event")
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode"
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Do not start the REST API server"
    )

    args = parser.parse_args()

    app = ConnectorApp(config_path=args.config)

    if args.dev:
        app.config.production_mode = False
    if args.no_api:
        app.config.api.enabled = False

    app.run()


if __name__ == "__main__":
    main()
