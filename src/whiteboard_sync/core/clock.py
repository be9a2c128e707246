"""Monotonic server clock for drawing action timestamps."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

_TICK = timedelta(microseconds=1)


class ActionClock:
    """Hands out strictly increasing UTC timestamps.

    Wall-clock time is used when it moves forward. When two actions are
    accepted within the same microsecond, or the system clock steps
    backwards, the previous timestamp is advanced by one microsecond so that
    history ordering by timestamp never ties within a process.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Return the next timestamp."""
        with self._lock:
            current = datetime.now(UTC)
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current
