"""
Bounded in-memory logs for the results relay.

Two independent instances exist per relay session:
- Application log (relay events, one line per step)
- Wire log (HTTP request/response trace from the transport)

Each log is a fixed-size circular buffer. Once full, the oldest entry is
overwritten. Reading returns the entries newest-first, with an ellipsis
entry in front when older entries have been dropped.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

TRUNCATION_MARKER = "..."
DEFAULT_CAPACITY = 25


def _now_hhmmss() -> str:
    return datetime.now().strftime("%H:%M:%S")


@dataclass(frozen=True)
class LogEntry:
    """One log line, stamped with local time (HH:MM:SS) on creation."""
    text: str
    time: str = field(default_factory=_now_hhmmss)

    def __str__(self) -> str:
        return f"{self.time} {self.text}"


class BoundedLog:
    """
    Thread-safe circular log of timestamped text lines.

    The write cursor always points at the most recently written slot, so a
    newest-first view is built by walking backwards from the cursor.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Initialize the log.

        Args:
            capacity: Max number of entries retained
        """
        if capacity <= 0:
            raise ValueError("capacity must be > 0")

        self._capacity = capacity
        self._slots: List[Optional[LogEntry]] = [None] * capacity
        self._cursor = -1
        self._count = 0
        self._wrapped = False
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total_writes(self) -> int:
        """Number of entries ever added since the last clear."""
        with self._lock:
            return self._count

    def add(self, text: str) -> None:
        """
        Add a line to the log, replacing the oldest one when full.

        Args:
            text: Line to be logged
        """
        entry = LogEntry(text)

        with self._lock:
            self._count += 1
            self._cursor += 1
            if self._cursor >= self._capacity:
                self._cursor = 0
                self._wrapped = True
            self._slots[self._cursor] = entry

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._slots = [None] * self._capacity
            self._cursor = -1
            self._count = 0
            self._wrapped = False

    def get(self) -> Optional[List[LogEntry]]:
        """
        Get all retained entries.

        Returns:
            Entries newest-first, preceded by a truncation marker entry if
            any entry has been evicted. None if the log is empty.
        """
        with self._lock:
            if self._cursor == -1:
                return None

            retained = self._capacity if self._wrapped else self._cursor + 1
            entries = [
                self._slots[(self._cursor - i) % self._capacity]
                for i in range(retained)
            ]
            evicted = self._count > self._capacity

        if evicted:
            entries.insert(0, LogEntry(TRUNCATION_MARKER))

        return entries

    def format(self) -> str:
        """Render the log as one "HH:MM:SS text" line per entry."""
        entries = self.get()
        if not entries:
            return ""
        return "\n".join(str(entry) for entry in entries)

    def __str__(self) -> str:
        return self.format()

    def __len__(self) -> int:
        with self._lock:
            return self._capacity if self._wrapped else self._cursor + 1

