"""
Metric Scaler - Clock.

============================================================
RESPONSIBILITY
============================================================
Testable clock abstraction for everything that reads the time.

- Query windows are computed from it
- Token expiry is checked against it
- MockClock makes both deterministic in tests

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only
- Thread-safe

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading


class ClockProtocol(ABC):
    """Abstract interface for a UTC clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def timestamp(self) -> float:
        """Get current Unix timestamp."""
        return self.now().timestamp()


class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)


class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Time only moves when set or advanced explicitly.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        """
        Initialize mock clock.

        Args:
            initial_time: Starting time (defaults to current UTC)
        """
        if initial_time is not None and initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time or datetime.now(timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Get current (mocked) datetime."""
        with self._lock:
            return self._time

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            if new_time.tzinfo is None:
                new_time = new_time.replace(tzinfo=timezone.utc)
            self._time = new_time

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)
