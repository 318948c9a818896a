"""
API Server for OFeed Connector.

Flask-based web server exposing relay status, logs and control.
"""

import logging
from flask import Flask
from flask_cors import CORS

from ofeed_connector.api.routes import create_api_blueprint

logger = logging.getLogger(__name__)


class APIServer:
    """
    Main API server class.

    Provides:
    - REST API endpoints for status, logs and relay control
    """

    def __init__(self, app_context, host: str = "127.0.0.1", port: int = 8090):
        """
        Initialize API server.

        Args:
            app_context: ConnectorApp instance
            host: Host to bind to
            port: Port to listen on
        """
        self.app_context = app_context
        self.host = host
        self.port = port
        self.flask_app = self._create_flask_app()

    def _create_flask_app(self) -> Flask:
        """Create and configure Flask application."""
        app = Flask(__name__)

        # Allow browser-based dashboards on other origins
        CORS(app)

        api_blueprint = create_api_blueprint(self.app_context)
        app.register_blueprint(api_blueprint)

        self._register_routes(app)

        return app

    def _register_routes(self, app: Flask) -> None:
        """Register additional routes."""

        @app.route("/")
        def index():
            """Plain-text summary: latest status followed by the log."""
            status = self.app_context.latest_status()
            log = self.app_context.application_log()
            body = f"{status[1:] if status else 'No status yet.'}\n\n{log}\n"
            return body, 200, {"Content-Type": "text/plain; charset=utf-8"}

        @app.errorhandler(404)
        def not_found(e):
            return {"error": "Not found"}, 404

        @app.errorhandler(500)
        def server_error(e):
            """Handle 500 errors."""
            logger.error(f"Server error: {e}")
            return {"error": "Internal server error"}, 500

    def run(self, debug: bool = False) -> None:
        """
        Run the Flask development server.

        Args:
            debug: Enable debug mode
        """
        logger.info(f"Starting API server on {self.host}:{self.port}")
        self.flask_app.run(
            host=self.host,
            port=self.port,
            debug=debug,
            threaded=True,
            use_reloader=False,
        )
