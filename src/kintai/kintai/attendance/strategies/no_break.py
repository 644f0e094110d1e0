from __future__ import annotations

from datetime import time
from typing import Sequence

from .base import BreakSlotStrategy


class NoBreakStrategy(BreakSlotStrategy):
    """No default break configured: nothing is synthesized."""

    def slots(self) -> Sequence[tuple[time, time]]:
        return ()
