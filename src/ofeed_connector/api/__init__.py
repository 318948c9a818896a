"""REST API module for OFeed Connector."""

from ofeed_connector.api.routes import create_api_blueprint
from ofeed_connector.api.server import APIServer

__all__ = ["create_api_blueprint", "APIServer"]
