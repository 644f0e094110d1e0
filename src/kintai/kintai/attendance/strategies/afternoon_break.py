from __future__ import annotations

from datetime import time
from typing import Sequence

from .base import BreakSlotStrategy

AFTERNOON_SLOT = (time(15, 0), time(15, 30))


class AfternoonBreakStrategy(BreakSlotStrategy):
    """30 minutes: 15:00-15:30."""

    def slots(self) -> Sequence[tuple[time, time]]:
        return (AFTERNOON_SLOT,)
