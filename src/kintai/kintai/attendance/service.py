from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import month_range
from ..common.validators import FieldErrors, check_period, present, read_datetime
from ..core.context import EmployeeContext
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leave.ledger import balance_of
from ..leave.model import PaidLeaveBalance
from ..leave.repository import LeaveRepository
from . import state_machine
from .factory import BreakStrategyFactory
from .model import AttendanceRecord, AttendanceSummary, BreakRecord
from .repository import AttendanceRepository
from .summary import StandardWorkTimeSplitter, WorkTimeSplitter, summarize_month

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyAttendance:
    records: Sequence[AttendanceRecord]
    summary: AttendanceSummary
    paid_leave: PaidLeaveBalance


@dataclass(frozen=True)
class AttendanceLog:
    record: AttendanceRecord
    employee_name: Optional[str]


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        leave: LeaveRepository,
        *,
        clock: Optional[Clock] = None,
        splitter: Optional[WorkTimeSplitter] = None,
        break_factory: Optional[BreakStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._leave = leave
        self._clock = clock or SystemClock()
        self._splitter = splitter or StandardWorkTimeSplitter()
        self._factory = break_factory or BreakStrategyFactory()

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee not found: {employee_id}")
        return employee

    def _work_date(self, work_date: Optional[date]) -> date:
        return work_date or self._clock.now().date()

    def _with_split(self, record: AttendanceRecord, employee: Employee) -> AttendanceRecord:
        if not record.clock_out:
            return replace(record, overtime_minutes=0, late_night_minutes=0)
        split = self._splitter.split(record, prescribed_work_hours=employee.prescribed_work_hours)
        return replace(
            record,
            overtime_minutes=split.overtime_minutes,
            late_night_minutes=split.late_night_minutes,
        )

    def _save(self, before: Optional[AttendanceRecord], after: AttendanceRecord) -> AttendanceRecord:
        return self._attendance.save(after, expected_version=before.version if before else 0)

    def clock_in(self, ctx: EmployeeContext, *, work_date: Optional[date] = None) -> AttendanceRecord:
        work_date = self._work_date(work_date)
        self._employee(ctx.employee_id)
        current = self._attendance.get_for_employee_and_date(ctx.employee_id, work_date)
        updated = state_machine.clock_in(
            current,
            employee_id=ctx.employee_id,
            work_date=work_date,
            now=self._clock.now(),
            actor=ctx.employee_id,
        )
        saved = self._save(current, updated)
        log.info("clock-in employee=%s date=%s at=%s", ctx.employee_id, work_date, saved.clock_in)
        return saved

    def start_break(self, ctx: EmployeeContext, *, work_date: Optional[date] = None) -> AttendanceRecord:
        work_date = self._work_date(work_date)
        current = self._attendance.get_for_employee_and_date(ctx.employee_id, work_date)
        updated = state_machine.start_break(current, now=self._clock.now(), actor=ctx.employee_id)
        saved = self._save(current, updated)
        log.info("break-start employee=%s date=%s", ctx.employee_id, work_date)
        return saved

    def end_break(self, ctx: EmployeeContext, *, work_date: Optional[date] = None) -> AttendanceRecord:
        work_date = self._work_date(work_date)
        current = self._attendance.get_for_employee_and_date(ctx.employee_id, work_date)
        updated = state_machine.end_break(current, now=self._clock.now(), actor=ctx.employee_id)
        if updated.clock_out:
            updated = self._with_split(updated, self._employee(ctx.employee_id))
        saved = self._save(current, updated)
        log.info("break-end employee=%s date=%s", ctx.employee_id, work_date)
        return saved

    def clock_out(self, ctx: EmployeeContext, *, work_date: Optional[date] = None) -> AttendanceRecord:
        work_date = self._work_date(work_date)
        employee = self._employee(ctx.employee_id)
        current = self._attendance.get_for_employee_and_date(ctx.employee_id, work_date)
        updated = state_machine.clock_out(
            current,
            now=self._clock.now(),
            actor=ctx.employee_id,
            break_slots=self._factory.for_default_break(employee.default_break_minutes),
        )
        saved = self._save(current, self._with_split(updated, employee))
        log.info(
            "clock-out employee=%s date=%s worked=%smin overtime=%smin late_night=%smin",
            ctx.employee_id,
            work_date,
            saved.total_work_minutes,
            saved.overtime_minutes,
            saved.late_night_minutes,
        )
        return saved

    def update_record(
        self, ctx: EmployeeContext, employee_id: str, work_date: date, payload: Mapping[str, Any]
    ) -> AttendanceRecord:
        """Manual correction by an administrator or by the employee for their own day."""
        ctx.require_self_or_admin(employee_id, action="edit attendance")
        employee = self._employee(employee_id)

        errors = FieldErrors()
        changes: dict[str, Any] = {}
        for key, field in (("clock_in", "clockIn"), ("clock_out", "clockOut")):
            if present(payload, field):
                changes[key] = read_datetime(errors, payload, field, required=False)

        breaks: Optional[list[BreakRecord]] = None
        if present(payload, "breaks"):
            raw = payload.get("breaks")
            if raw is None:
                raw = []
            if not isinstance(raw, list):
                errors.add("breaks", "breaks must be an array")
            else:
                breaks = []
                for idx, item in enumerate(raw):
                    if not isinstance(item, Mapping):
                        errors.add(f"breaks[{idx}]", "break must be an object")
                        continue
                    item_errors = FieldErrors()
                    start = read_datetime(item_errors, item, "start")
                    end = read_datetime(item_errors, item, "end", required=False)
                    errors.merge(item_errors, prefix=f"breaks[{idx}].")
                    if start is not None:
                        breaks.append(BreakRecord(start=start, end=end))
        errors.raise_if_any("Invalid attendance correction")

        current = self._attendance.get_for_employee_and_date(employee_id, work_date)
        updated = state_machine.correct(
            current,
            employee_id=employee_id,
            work_date=work_date,
            now=self._clock.now(),
            actor=ctx.employee_id,
            breaks=breaks,
            **changes,
        )
        saved = self._save(current, self._with_split(updated, employee))
        log.info(
            "attendance corrected employee=%s date=%s by=%s status=%s",
            employee_id,
            work_date,
            ctx.employee_id,
            saved.status.value,
        )
        return saved

    def list_logs(
        self,
        ctx: EmployeeContext,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[str] = None,
    ) -> Sequence[AttendanceLog]:
        """Admin view of every punch in [start_date, end_date], optionally for one employee."""
        ctx.require_admin()
        if end_date < start_date:
            raise ValidationError("Invalid period", {"endDate": ["endDate must be on or after startDate"]})
        if employee_id:
            self._employee(employee_id)
        records = self._attendance.list_between(
            start_date=start_date, end_date=end_date, employee_id=employee_id or None
        )
        log.info(
            "attendance list by=%s from=%s to=%s employee=%s count=%d",
            ctx.employee_id,
            start_date,
            end_date,
            employee_id,
            len(records),
        )
        names: dict[str, Optional[str]] = {}
        for r in records:
            if r.employee_id not in names:
                employee = self._employees.get_by_id(r.employee_id)
                names[r.employee_id] = employee.name if employee else None
        ordered = sorted(records, key=lambda r: (r.work_date, r.employee_id))
        return [AttendanceLog(record=r, employee_name=names[r.employee_id]) for r in ordered]

    def update_memo(
        self, ctx: EmployeeContext, employee_id: str, work_date: date, memo: Optional[str]
    ) -> AttendanceRecord:
        ctx.require_self_or_admin(employee_id, action="edit the attendance memo")
        if memo is not None and not isinstance(memo, str):
            raise ValidationError("Invalid memo", {"memo": ["memo must be a string or null"]})
        current = self._attendance.get_for_employee_and_date(employee_id, work_date)
        updated = state_machine.set_memo(current, memo=memo, now=self._clock.now(), actor=ctx.employee_id)
        return self._save(current, updated)

    def get_my_records(
        self, ctx: EmployeeContext, *, year: int, month: int, employee_id: Optional[str] = None
    ) -> MonthlyAttendance:
        target = employee_id or ctx.employee_id
        ctx.require_self_or_admin(target, action="view attendance")
        check_period(year=year, month=month)
        self._employee(target)

        start, end = month_range(year, month)
        records = sorted(
            self._attendance.list_for_employee(target, start_date=start, end_date=end),
            key=lambda r: r.work_date,
        )
        summary = summarize_month(target, year, month, records)
        grants = self._leave.list_grants(target)
        requests = self._leave.list_requests(employee_id=target)
        return MonthlyAttendance(records=records, summary=summary, paid_leave=balance_of(target, grants, requests))
