from __future__ import annotations

from datetime import time
from typing import Sequence

from .base import BreakSlotStrategy

LUNCH_SLOT = (time(12, 0), time(13, 0))


class LunchBreakStrategy(BreakSlotStrategy):
    """60 minutes: 12:00-13:00."""

    def slots(self) -> Sequence[tuple[time, time]]:
        return (LUNCH_SLOT,)
