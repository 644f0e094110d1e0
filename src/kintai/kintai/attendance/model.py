from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class BreakRecord:
    """A break inside one working day.

    Edits never mutate a break in place: the old row is deactivated
    (``is_active=False``) and a replacement is appended.
    """

    start: datetime
    end: Optional[datetime] = None
    is_active: bool = True
    break_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.is_active and self.end is None

    @property
    def minutes(self) -> int:
        if self.end is None:
            return 0
        return max(int((self.end - self.start).total_seconds() // 60), 0)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day."""

    employee_id: str
    work_date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    breaks: tuple[BreakRecord, ...] = field(default_factory=tuple)
    status: AttendanceStatus = AttendanceStatus.NOT_STARTED
    total_work_minutes: int = 0
    overtime_minutes: int = 0
    late_night_minutes: int = 0
    memo: Optional[str] = None
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    attendance_id: Optional[str] = None
    version: int = 0

    @property
    def active_breaks(self) -> tuple[BreakRecord, ...]:
        return tuple(b for b in self.breaks if b.is_active)

    @property
    def open_break(self) -> Optional[BreakRecord]:
        for b in reversed(self.breaks):
            if b.is_open:
                return b
        return None


@dataclass(frozen=True)
class WorkTimeSplit:
    """Overtime and late-night minutes derived for one record."""

    overtime_minutes: int
    late_night_minutes: int


@dataclass(frozen=True)
class AttendanceSummary:
    """Monthly aggregate shown on the attendance book and fed to payroll."""

    employee_id: str
    year: int
    month: int
    actual_work_minutes: int
    normal_overtime_minutes: int
    late_night_minutes: int
    actual_work_days: int
    weekday_work_days: int
    holiday_work_days: int
