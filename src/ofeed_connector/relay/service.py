"""
One relay session: logs, status, transport and scheduler wired together.
"""

import logging
from typing import Any, Callable, Dict, Optional

import requests

from ofeed_connector.config import RelayConfig
from ofeed_connector.diagnostics import BoundedLog, StatusListener, StatusTracker
from ofeed_connector.http.client import build_timeout, create_session
from ofeed_connector.relay.fetcher import Fetcher
from ofeed_connector.relay.scheduler import STARTUP_DELAY_MS, RelayScheduler
from ofeed_connector.relay.uploader import Uploader

logger = logging.getLogger(__name__)

LOG_CAPACITY = 25


class ResultsRelay:
    """
    Gets results from SI-Droid Event and uploads them to OFeed.

    A relay runs once: start() then stop(). Create a new instance to
    start relaying again.
    """

    def __init__(
        self,
        config: RelayConfig,
        listener: Optional[StatusListener] = None,
        session: Optional[requests.Session] = None,
        startup_delay_ms: int = STARTUP_DELAY_MS,
        timer_factory: Optional[Callable] = None,
    ):
        """
        Initialize relay.

        Args:
            config: Relay configuration
            listener: Optional status listener
            session: HTTP session; created from config if None
            startup_delay_ms: Delay before the first cycle
            timer_factory: Timer factory passed to the scheduler
        """
        self.config = config
        self.log = BoundedLog(LOG_CAPACITY)
        self.http_log = BoundedLog(LOG_CAPACITY)
        self.status = StatusTracker(listener)

        if session is None:
            timeout = build_timeout(
                config.connect_timeout_ms,
                config.read_timeout_ms,
                config.write_timeout_ms,
                config.call_timeout_ms,
            )
            session = create_session(config.user_agent, timeout, trace=self.http_log.add)
        self._session = session

        self.fetcher = Fetcher(session, config, self.log, self.status)
        self.uploader = Uploader(session, config, self.log, self.status)
        self.scheduler = RelayScheduler(
            self.fetcher,
            self.uploader,
            self.log,
            self.status,
            config.poll_interval_ms,
            startup_delay_ms=startup_delay_ms,
            timer_factory=timer_factory,
        )

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    def start(self) -> None:
        logger.info(f"Relaying {self.config.source_url} -> {self.config.sink_url}")
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop, wait for an in-flight cycle, then release the HTTP session."""
        self.stop()
        if self.scheduler.wait_idle(timeout):
            self._session.close()
        else:
            logger.warning("Relay cycle still in progress, HTTP session left open")

    # =========================================================================
    # Observation
    # =========================================================================

    def bind(self, listener: StatusListener) -> None:
        self.status.set_listener(listener)

    def unbind(self) -> None:
        self.status.set_listener(None)

    def latest_status(self) -> str:
        """Most recent status, prefixed "S" (success) or "F" (failure)."""
        return self.status.latest()

    def application_log(self) -> str:
        return self.log.format()

    def wire_log(self) -> str:
        return self.http_log.format()

    def get_status(self) -> Dict[str, Any]:
        snapshot = self.status.snapshot()
        return {
            "running": self.is_running,
            "state": self.scheduler.state.value,
            "cycles_completed": self.scheduler.cycles_completed,
            "cycle_in_progress": self.scheduler.cycle_in_progress,
            "latest_status": snapshot.to_dict() if snapshot else None,
        }
