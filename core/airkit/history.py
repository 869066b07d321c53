"""
Device Event History

Simple in-memory history of writes sent to, and polls read from, the touch
panel. Used by the API to show what the bridge has been doing.
"""

import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone


@dataclass
class WriteEvent:
    """A command batch written to the touch panel."""

    timestamp: str  # ISO format
    commands: list[str]
    success: bool
    reason: str | None = None


@dataclass
class PollEvent:
    """A failed poll of the touch panel."""

    timestamp: str  # ISO format
    error: str


class HistoryTracker:
    """Tracks recent writes and poll failures."""

    def __init__(self, max_events: int = 500):
        """Initialize history tracker.

        Args:
            max_events: How many events of each kind to keep
        """
        self.writes: deque[WriteEvent] = deque(maxlen=max_events)
        self.poll_failures: deque[PollEvent] = deque(maxlen=max_events)

        self.lock = threading.Lock()

    def add_write(self, commands: list[str], success: bool, reason: str | None = None):
        event = WriteEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            commands=commands,
            success=success,
            reason=reason,
        )
        with self.lock:
            self.writes.append(event)

    def add_poll_failure(self, error: str):
        event = PollEvent(timestamp=datetime.now(timezone.utc).isoformat(), error=error)
        with self.lock:
            self.poll_failures.append(event)

    def get_events(self, limit: int = 50) -> dict[str, list[dict]]:
        """Return the most recent events, newest first."""
        with self.lock:
            writes = list(self.writes)[-limit:]
            polls = list(self.poll_failures)[-limit:]

        return {
            "writes": [asdict(e) for e in reversed(writes)],
            "poll_failures": [asdict(e) for e in reversed(polls)],
        }

    def clear(self):
        with self.lock:
            self.writes.clear()
            self.poll_failures.clear()


# Global history tracker instance
history_tracker = HistoryTracker()
