from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_PRESCRIBED_WORK_HOURS
from ..core.enums import EmploymentType


@dataclass(frozen=True)
class Employee:
    """Domain entity: a roster entry.

    ``base_salary`` is monthly for FULL_TIME and hourly for PART_TIME.
    ``default_break_minutes`` is None when no break is synthesized at clock-out.
    """

    employee_id: str
    first_name: str
    last_name: str
    employment_type: EmploymentType
    email: str
    join_date: date
    base_salary: Decimal
    leave_date: Optional[date] = None
    is_admin: bool = False
    default_break_minutes: Optional[int] = None
    prescribed_work_hours: Decimal = DEFAULT_PRESCRIBED_WORK_HOURS
    allowance_ids: tuple[str, ...] = field(default_factory=tuple)
    updated_by: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.last_name} {self.first_name}"

    def is_active_on(self, today: date) -> bool:
        if today < self.join_date:
            return False
        return self.leave_date is None or today < self.leave_date
