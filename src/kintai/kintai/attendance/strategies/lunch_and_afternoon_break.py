from __future__ import annotations

from datetime import time
from typing import Sequence

from .afternoon_break import AFTERNOON_SLOT
from .base import BreakSlotStrategy
from .lunch_break import LUNCH_SLOT


class LunchAndAfternoonBreakStrategy(BreakSlotStrategy):
    """90 minutes: 12:00-13:00 and 15:00-15:30."""

    def slots(self) -> Sequence[tuple[time, time]]:
        return (LUNCH_SLOT, AFTERNOON_SLOT)
