"""
Time abstraction layer for the autoheal agent.

Provides an injectable clock that can be:
- Real-time (production loop)
- Manual (tests, replay)

Issue ids, metric timestamps and alert timestamps all come from the
injected clock so that a tick is reproducible under test.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
from typing import Optional


class Clock(ABC):
    """Abstract clock interface"""

    @abstractmethod
    def now(self) -> datetime:
        """Get current time (always UTC)"""
        pass


class SystemClock(Clock):
    """Wall clock"""

    def now(self) -> datetime:
        """Current UTC time"""
        return datetime.now(timezone.utc)


class ManualClock(Clock):
    """Clock advanced explicitly by the caller"""

    def __init__(self, start_time: Optional[datetime] = None):
        """
        Args:
            start_time: Initial time (must be timezone-aware)
        """
        start_time = start_time or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware (UTC)")

        self._current_time = start_time.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: Optional[timedelta] = None, seconds: float = 0):
        """
        Advance time by delta (or by a number of seconds).

        Args:
            delta: Time to advance
            seconds: Convenience alternative to delta
        """
        self._current_time += delta if delta is not None else timedelta(seconds=seconds)

    def set_time(self, new_time: datetime):
        if new_time.tzinfo is None:
            raise ValueError("new_time must be timezone-aware (UTC)")

        self._current_time = new_time.astimezone(timezone.utc)


def epoch_ms(dt: datetime) -> int:
    """Milliseconds since Unix epoch for *dt* (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
