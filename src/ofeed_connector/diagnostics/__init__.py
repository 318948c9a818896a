"""Application log, wire log and latest-status tracking."""

from ofeed_connector.diagnostics.log import BoundedLog, LogEntry, TRUNCATION_MARKER
from ofeed_connector.diagnostics.status import (
    StatusListener,
    StatusSnapshot,
    StatusTracker,
)

__all__ = [
    "BoundedLog",
    "LogEntry",
    "TRUNCATION_MARKER",
    "StatusListener",
    "StatusSnapshot",
    "StatusTracker",
]
