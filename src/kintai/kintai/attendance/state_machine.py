"""Attendance state machine.

NOT_STARTED -> WORKING -> ON_BREAK -> WORKING -> COMPLETED

Every transition is a pure function: it takes the current record (or None when
no record exists for the day yet) and returns the next record. Nothing here
touches storage or reads the wall clock; the caller passes ``now`` and
persists the result.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.validators import FieldErrors
from ..core.enums import AttendanceStatus
from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from .model import AttendanceRecord, BreakRecord
from .strategies.base import BreakSlotStrategy


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def derive_status(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> AttendanceStatus:
    if clock_in and clock_out:
        return AttendanceStatus.COMPLETED
    if clock_in:
        return AttendanceStatus.WORKING
    return AttendanceStatus.NOT_STARTED


def total_work_minutes(
    clock_in: Optional[datetime], clock_out: Optional[datetime], breaks: Sequence[BreakRecord]
) -> int:
    """(clock_out - clock_in) minus closed active breaks, never below zero."""
    if not clock_in or not clock_out:
        return 0
    worked = clock_out - clock_in
    for b in breaks:
        if b.is_active and b.end is not None:
            worked -= b.end - b.start
    return max(int(worked.total_seconds() // 60), 0)


def _new_record(employee_id: str, work_date: date) -> AttendanceRecord:
    return AttendanceRecord(employee_id=employee_id, work_date=work_date)


def clock_in(
    record: Optional[AttendanceRecord], *, employee_id: str, work_date: date, now: datetime, actor: str
) -> AttendanceRecord:
    if record and record.clock_in:
        raise ConflictError("Already clocked in for this day")
    base = record or _new_record(employee_id, work_date)
    return replace(
        base,
        clock_in=now,
        status=AttendanceStatus.WORKING,
        updated_by=actor,
        updated_at=now,
    )


def start_break(record: Optional[AttendanceRecord], *, now: datetime, actor: str) -> AttendanceRecord:
    if not record or not record.clock_in:
        raise BadRequestError("Not clocked in yet")
    if record.status == AttendanceStatus.COMPLETED or record.clock_out:
        raise BadRequestError("Cannot start a break after clocking out")
    if record.open_break:
        raise BadRequestError("A break is already in progress")
    return replace(
        record,
        breaks=record.breaks + (BreakRecord(start=now),),
        status=AttendanceStatus.ON_BREAK,
        updated_by=actor,
        updated_at=now,
    )


def _close_open_break(breaks: tuple[BreakRecord, ...], end: datetime) -> tuple[BreakRecord, ...]:
    for idx in range(len(breaks) - 1, -1, -1):
        if breaks[idx].is_open:
            closed = replace(breaks[idx], end=max(end, breaks[idx].start))
            return breaks[:idx] + (closed,) + breaks[idx + 1 :]
    return breaks


def end_break(record: Optional[AttendanceRecord], *, now: datetime, actor: str) -> AttendanceRecord:
    if not record or not record.open_break:
        raise BadRequestError("No break in progress")
    breaks = _close_open_break(record.breaks, now)
    status = record.status if record.status == AttendanceStatus.COMPLETED else AttendanceStatus.WORKING
    return replace(
        record,
        breaks=breaks,
        status=status,
        total_work_minutes=total_work_minutes(record.clock_in, record.clock_out, breaks),
        updated_by=actor,
        updated_at=now,
    )


def clock_out(
    record: Optional[AttendanceRecord], *, now: datetime, actor: str, break_slots: BreakSlotStrategy
) -> AttendanceRecord:
    if not record or not record.clock_in:
        raise BadRequestError("Not clocked in yet")
    if record.clock_out:
        raise ConflictError("Already clocked out for this day")
    if now <= record.clock_in:
        raise BadRequestError("Clock-out must be later than clock-in")

    breaks = record.breaks
    if record.open_break:
        breaks = _close_open_break(breaks, now)
    elif not record.active_breaks:
        breaks = breaks + break_slots.synthesize(work_date=record.work_date, clock_in=record.clock_in, clock_out=now)

    return replace(
        record,
        clock_out=now,
        breaks=breaks,
        status=AttendanceStatus.COMPLETED,
        total_work_minutes=total_work_minutes(record.clock_in, now, breaks),
        updated_by=actor,
        updated_at=now,
    )


def check_timeline(
    clock_in: Optional[datetime], clock_out: Optional[datetime], breaks: Sequence[BreakRecord]
) -> FieldErrors:
    """Field-scoped errors for a manually entered day; empty when consistent."""
    errors = FieldErrors()
    if clock_out and not clock_in:
        errors.add("clockIn", "clockIn is required when clockOut is set")
    if clock_in and clock_out and clock_out <= clock_in:
        errors.add("clockOut", "clockOut must be later than clockIn")

    open_count = 0
    for idx, b in enumerate(breaks):
        key = f"breaks[{idx}]"
        if b.end is None:
            open_count += 1
            if clock_out:
                errors.add(f"{key}.end", "end is required once clocked out")
        elif b.end <= b.start:
            errors.add(f"{key}.end", "end must be later than start")
        if clock_in and b.start < clock_in:
            errors.add(f"{key}.start", "start must not be earlier than clockIn")
        if clock_out and (b.start >= clock_out or (b.end and b.end > clock_out)):
            errors.add(f"{key}.start", "break must lie within clockIn and clockOut")
    if open_count > 1:
        errors.add("breaks", "at most one break may be open")

    ordered = sorted(breaks, key=lambda b: b.start)
    for prev, nxt in zip(ordered, ordered[1:]):
        if prev.end is None or nxt.start < prev.end:
            errors.add("breaks", "breaks must not overlap")
            break
    return errors


def correct(
    record: Optional[AttendanceRecord],
    *,
    employee_id: str,
    work_date: date,
    now: datetime,
    actor: str,
    clock_in=UNSET,
    clock_out=UNSET,
    breaks: Optional[Sequence[BreakRecord]] = None,
) -> AttendanceRecord:
    """Manual correction.

    ``clock_in``/``clock_out`` left as UNSET keep the stored values (None clears
    them). ``breaks=None`` keeps existing breaks; a sequence (possibly empty)
    supersedes every active break.
    """
    base = record or _new_record(employee_id, work_date)
    new_in = base.clock_in if clock_in is UNSET else clock_in
    new_out = base.clock_out if clock_out is UNSET else clock_out

    if breaks is None:
        new_breaks = base.breaks
        effective = base.active_breaks
    else:
        effective = tuple(BreakRecord(start=b.start, end=b.end) for b in breaks)
        retired = tuple(replace(b, is_active=False) if b.is_active else b for b in base.breaks)
        new_breaks = retired + effective

    check_timeline(new_in, new_out, effective).raise_if_any("Invalid attendance correction")

    return replace(
        base,
        clock_in=new_in,
        clock_out=new_out,
        breaks=new_breaks,
        status=derive_status(new_in, new_out),
        total_work_minutes=total_work_minutes(new_in, new_out, new_breaks),
        updated_by=actor,
        updated_at=now,
    )


def set_memo(record: Optional[AttendanceRecord], *, memo: Optional[str], now: datetime, actor: str) -> AttendanceRecord:
    if record is None:
        raise NotFoundError("No attendance record for this day")
    return replace(record, memo=memo, updated_by=actor, updated_at=now)
