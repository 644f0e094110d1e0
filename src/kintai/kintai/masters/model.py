from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_DISPLAY_ORDER


@dataclass(frozen=True)
class AllowanceMaster:
    """An allowance line shown on payslips.

    ``include_in_overtime`` marks allowances whose amount feeds the overtime-rate base.
    """

    allowance_id: str
    name: str
    color: Optional[str] = None
    include_in_overtime: bool = False
    display_order: int = DEFAULT_DISPLAY_ORDER
    is_active: bool = True
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class DeductionMaster:
    deduction_id: str
    name: str
    display_order: int = DEFAULT_DISPLAY_ORDER
    is_active: bool = True
    updated_by: Optional[str] = None
