from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .strategies.afternoon_break import AfternoonBreakStrategy
from .strategies.base import BreakSlotStrategy
from .strategies.lunch_and_afternoon_break import LunchAndAfternoonBreakStrategy
from .strategies.lunch_break import LunchBreakStrategy
from .strategies.no_break import NoBreakStrategy


@dataclass
class BreakStrategyFactory:
    """Factory Pattern: choose the break slots for an employee's default break time."""

    def for_default_break(self, default_break_minutes: Optional[int]) -> BreakSlotStrategy:
        if default_break_minutes == 30:
            return AfternoonBreakStrategy()
        if default_break_minutes == 60:
            return LunchBreakStrategy()
        if default_break_minutes == 90:
            return LunchAndAfternoonBreakStrategy()
        return NoBreakStrategy()
