"""Injectable time source.

The engine never calls ``datetime.now()`` directly; it receives a Clock at
construction so checkouts, returns and fine previews are deterministic
under test.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    """Supplies the current instant as a timezone-aware UTC datetime."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Test clock that only moves when told to.

    ``now()`` returns the same value on repeated calls until ``advance()``
    or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: Optional[datetime] = None):
        """Initialize with optional fixed time.

        Args:
            fixed_time: Starting instant. Naive values are taken as UTC.
                        Defaults to 2024-01-01T00:00:00Z.
        """
        self._time = as_utc(fixed_time or datetime(2024, 1, 1, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._time = as_utc(time)

    def advance(self, **kwargs: float) -> datetime:
        """Move the clock forward by a timedelta built from ``kwargs``.

        Example:
            >>> clock = FixedClock()
            >>> clock.advance(days=1, hours=2).isoformat()
            '2024-01-02T02:00:00+00:00'
        """
        self._time = self._time + timedelta(**kwargs)
        return self._time


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are assumed UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
