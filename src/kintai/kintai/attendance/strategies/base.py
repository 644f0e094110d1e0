from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import Sequence

from ...common.datetime_utils import at_jst
from ..model import BreakRecord


class BreakSlotStrategy(ABC):
    """Strategy Pattern: which fixed break slots a default break time implies."""

    @abstractmethod
    def slots(self) -> Sequence[tuple[time, time]]:
        raise NotImplementedError

    def synthesize(self, *, work_date: date, clock_in: datetime, clock_out: datetime) -> tuple[BreakRecord, ...]:
        """Break records for the slots that fall inside [clock_in, clock_out).

        A slot is used only if it starts before clock_out; a slot that runs past
        clock_out (or starts before clock_in) is clipped to the punches.
        """
        out: list[BreakRecord] = []
        for slot_start, slot_end in self.slots():
            start = at_jst(work_date, slot_start)
            end = at_jst(work_date, slot_end)
            if start >= clock_out or end <= clock_in:
                continue
            out.append(BreakRecord(start=max(start, clock_in), end=min(end, clock_out)))
        return tuple(out)
