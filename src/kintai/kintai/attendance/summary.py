"""Overtime / late-night split and monthly aggregation of attendance records."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Protocol

from ..common.datetime_utils import at_jst, to_jst
from ..core.constants import LATE_NIGHT_END, LATE_NIGHT_START
from .model import AttendanceRecord, AttendanceSummary, WorkTimeSplit

SATURDAY = 5


class WorkTimeSplitter(Protocol):
    def split(self, record: AttendanceRecord, *, prescribed_work_hours: Decimal) -> WorkTimeSplit:
        raise NotImplementedError


def _worked_intervals(record: AttendanceRecord) -> list[tuple[datetime, datetime]]:
    """[clock_in, clock_out) with every closed active break cut out."""
    if not record.clock_in or not record.clock_out:
        return []
    intervals = [(to_jst(record.clock_in), to_jst(record.clock_out))]
    for b in sorted(record.active_breaks, key=lambda b: b.start):
        if b.end is None:
            continue
        b_start, b_end = to_jst(b.start), to_jst(b.end)
        cut: list[tuple[datetime, datetime]] = []
        for start, end in intervals:
            if b_end <= start or b_start >= end:
                cut.append((start, end))
                continue
            if start < b_start:
                cut.append((start, b_start))
            if b_end < end:
                cut.append((b_end, end))
        intervals = cut
    return intervals


def _late_night_windows(first: date, last: date) -> Iterable[tuple[datetime, datetime]]:
    day = first - timedelta(days=1)
    while day <= last:
        yield at_jst(day, LATE_NIGHT_START), at_jst(day + timedelta(days=1), LATE_NIGHT_END)
        day += timedelta(days=1)


def _overlap_seconds(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    return max((end - start).total_seconds(), 0.0)


class StandardWorkTimeSplitter:
    """Late-night = worked minutes inside 22:00-05:00.

    Normal overtime = worked minutes beyond the prescribed daily hours, less
    whatever of that excess is already paid as late-night.
    """

    def split(self, record: AttendanceRecord, *, prescribed_work_hours: Decimal) -> WorkTimeSplit:
        intervals = _worked_intervals(record)
        if not intervals:
            return WorkTimeSplit(overtime_minutes=0, late_night_minutes=0)

        first = intervals[0][0].date()
        last = intervals[-1][1].date()
        late_seconds = 0.0
        for w_start, w_end in _late_night_windows(first, last):
            for start, end in intervals:
                late_seconds += _overlap_seconds(start, end, w_start, w_end)
        late_night = int(late_seconds // 60)

        prescribed = int(Decimal(prescribed_work_hours) * 60)
        beyond = max(record.total_work_minutes - prescribed, 0)
        return WorkTimeSplit(overtime_minutes=max(beyond - late_night, 0), late_night_minutes=late_night)


def is_holiday(work_date: date) -> bool:
    return work_date.weekday() >= SATURDAY


def summarize_month(
    employee_id: str, year: int, month: int, records: Iterable[AttendanceRecord]
) -> AttendanceSummary:
    actual = overtime = late_night = 0
    days = weekday_days = holiday_days = 0
    for r in records:
        if r.work_date.year != year or r.work_date.month != month:
            continue
        actual += r.total_work_minutes
        overtime += r.overtime_minutes
        late_night += r.late_night_minutes
        if r.clock_in and r.clock_out:
            days += 1
            if is_holiday(r.work_date):
                holiday_days += 1
            else:
                weekday_days += 1
    return AttendanceSummary(
        employee_id=employee_id,
        year=year,
        month=month,
        actual_work_minutes=actual,
        normal_overtime_minutes=overtime,
        late_night_minutes=late_night,
        actual_work_days=days,
        weekday_work_days=weekday_days,
        holiday_work_days=holiday_days,
    )
