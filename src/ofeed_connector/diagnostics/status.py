"""
Latest-status tracking for the results relay.

Holds the outcome of the most recent relay step and forwards it to an
optional listener (the UI, or anything else that wants to observe).
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

SUCCESS_PREFIX = "S"
FAILURE_PREFIX = "F"


class StatusListener(Protocol):
    """Receives the timestamped status text of each relay step."""

    def on_success(self, status: str) -> None:
        ...

    def on_failure(self, status: str) -> None:
        ...


@dataclass(frozen=True)
class StatusSnapshot:
    """The most recent status."""
    succeeded: bool
    message: str
    timestamp: datetime

    def to_dict(self):
        return {
            "succeeded": self.succeeded,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class StatusTracker:
    """
    Records the single most recent success/failure.

    Each record is stamped with local time, e.g. "14:03:21 No results yet.",
    and overwrites the previous one.
    """

    def __init__(self, listener: Optional[StatusListener] = None):
        self._listener = listener
        self._snapshot: Optional[StatusSnapshot] = None
        self._lock = threading.Lock()

    def set_listener(self, listener: Optional[StatusListener]) -> None:
        """Attach a listener, or detach the current one with None."""
        with self._lock:
            self._listener = listener

    def record_success(self, message: str) -> str:
        return self._record(True, message)

    def record_failure(self, message: str) -> str:
        return self._record(False, message)

    def _record(self, succeeded: bool, message: str) -> str:
        now = datetime.now()
        text = f"{now.strftime('%H:%M:%S')} {message}"

        with self._lock:
            self._snapshot = StatusSnapshot(succeeded, text, now)
            listener = self._listener

        if listener is not None:
            try:
                if succeeded:
                    listener.on_success(text)
                else:
                    listener.on_failure(text)
            except Exception as e:
                logger.error(f"Status listener error: {e}")

        return text

    def snapshot(self) -> Optional[StatusSnapshot]:
        with self._lock:
            return self._snapshot

    def latest(self) -> str:
        """
        Get status of the most recent relay step.

        Returns:
            Timestamped status prefixed with "S" for success or "F" for
            failure, or an empty string if nothing has been recorded yet.
        """
        snapshot = self.snapshot()
        if snapshot is None:
            return ""
        prefix = SUCCESS_PREFIX if snapshot.succeeded else FAILURE_PREFIX
        return prefix + snapshot.message
