"""Injectable time source.

Lifecycle and allocation code receives ``now`` explicitly; services obtain it
from a Clock so tests can pin time.
"""

from datetime import datetime, timedelta
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current timezone-aware instant."""
        ...


class SystemClock:
    """Production clock backed by Django's timezone support."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """Test clock that only moves when told to."""

    def __init__(self, fixed: datetime) -> None:
        if fixed.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime")
        self._now = fixed

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now += delta

    def set(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime")
        self._now = moment
