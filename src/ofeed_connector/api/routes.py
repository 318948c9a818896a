"""
REST API routes for OFeed Connector.

Base path: /api/v1
"""

import logging
from flask import Blueprint, request, jsonify

logger = logging.getLogger(__name__)


def create_api_blueprint(app_context):
    """
    Create Flask blueprint with all API routes.

    Args:
        app_context: ConnectorApp instance

    Returns:
        Flask Blueprint
    """
    api = Blueprint("api", __name__, url_prefix="/api/v1")

    # =========================================================================
    # Status & Logs
    # =========================================================================

    @api.route("/status", methods=["GET"])
    def get_status():
        """
        Get relay status.

        "latest_status" is prefixed with "S" for success or "F" for
        failure, or empty if nothing has happened yet.
        """
        return jsonify(app_context.get_status())

    @api.route("/log", methods=["GET"])
    def get_log():
        """Application log, newest entry first."""
        return jsonify({"log": app_context.application_log()})

    @api.route("/http-log", methods=["GET"])
    def get_http_log():
        """HTTP request/response trace, newest entry first."""
        return jsonify({"log": app_context.wire_log()})

    @api.route("/ping", methods=["GET"])
    def ping_source():
        """Check whether SI-Droid Event is reachable."""
        return jsonify({
            "reachable": app_context.ping_source(),
            "url": app_context.config.source.ping_url,
        })

    # =========================================================================
    # Relay Control
    # =========================================================================

    @api.route("/relay/start", methods=["POST"])
    def start_relay():
        """Start uploading results."""
        result = app_context.start_relay()
        status_code = 200 if result.get("success") else 409
        return jsonify(result), status_code

    @api.route("/relay/stop", methods=["POST"])
    def stop_relay():
        """Stop uploading results."""
        result = app_context.stop_relay()
        status_code = 200 if result.get("success") else 409
        return jsonify(result), status_code

    # =========================================================================
    # Configuration
    # =========================================================================

    @api.route("/config", methods=["GET"])
    def get_config():
        """Get current configuration (password masked)."""
        return jsonify(app_context.config.to_dict(mask_secrets=True))

    @api.route("/config", methods=["POST"])
    def update_config():
        """
        Update configuration. Stops a running relay.

        Request body: partial config, e.g.
        {
            "source": {"port": 8080},
            "sink": {"event_id": "...", "event_password": "..."},
            "relay": {"upload_interval_sec": 30}
        }
        """
        data = request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            return jsonify({"error": "Request body required"}), 400

        try:
            result = app_context.update_config(data)
        except ValueError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        except Exception as e:
            logger.error(f"Error updating config: {e}")
            return jsonify({"success": False, "error": str(e)}), 500

        return jsonify(result)

    return api
