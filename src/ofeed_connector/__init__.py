"""
OFeed Connector - SI-Droid Event to OFeed results relay

Polls the results service of SI-Droid Event and uploads the result list
to OFeed at a fixed interval.
"""

__version__ = "1.0.0"
__author__ = "OFeed Connector Team"

from ofeed_connector.config import Config, RelayConfig
from ofeed_connector.app import ConnectorApp

__all__ = ["Config", "RelayConfig", "ConnectorApp", "__version__"]
