"""Clock seam.

Punch times always come from an injected clock, never from the client, so a
request cannot backdate a clock-in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from .datetime_utils import JST, to_jst


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time as a timezone-aware JST datetime."""
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(JST)


class DeterministicClock(Clock):
    """Test clock that only moves when told to."""

    def __init__(self, current: datetime):
        self._current = to_jst(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = to_jst(current)

    def advance(self, *, minutes: int = 0, hours: int = 0) -> datetime:
        self._current = self._current + timedelta(minutes=minutes, hours=hours)
        return self._current
