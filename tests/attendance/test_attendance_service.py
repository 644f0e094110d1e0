from __future__ import annotations

from dataclasses import replace
from datetime import date, time
from decimal import Decimal
from typing import Optional

import pytest

from kintai.attendance.model import AttendanceRecord
from kintai.attendance.service import AttendanceService
from kintai.common.clock import DeterministicClock
from kintai.common.datetime_utils import at_jst
from kintai.core.context import EmployeeContext
from kintai.core.enums import AttendanceStatus, EmploymentType, Role
from kintai.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from kintai.employees.model import Employee
from kintai.leave.model import PaidLeaveGrant

DAY = date(2024, 4, 1)


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        return self._by_id.get(employee_id)


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[tuple[str, date], AttendanceRecord] = {}
        self._next_id = 1

    def get_for_employee_and_date(self, employee_id, work_date):
        return self.rows.get((employee_id, work_date))

    def list_for_employee(self, employee_id, *, start_date, end_date):
        return [r for (emp, d), r in self.rows.items() if emp == employee_id and start_date <= d <= end_date]

    def list_between(self, *, start_date, end_date, employee_id=None):
        return [
            r
            for (emp, d), r in self.rows.items()
            if start_date <= d <= end_date and (employee_id is None or emp == employee_id)
        ]

    def save(self, record, *, expected_version):
        key = (record.employee_id, record.work_date)
        stored = self.rows.get(key)
        if (stored.version if stored else 0) != expected_version:
            raise ConflictError("stale attendance record")
        if record.attendance_id is None:
            record = replace(record, attendance_id=f"att-{self._next_id}")
            self._next_id += 1
        saved = replace(record, version=expected_version + 1)
        self.rows[key] = saved
        return saved


class InMemoryLeave:
    def __init__(self, grants=()):
        self.grants = list(grants)

    def list_grants(self, employee_id):
        return [g for g in self.grants if g.employee_id == employee_id]

    def list_requests(self, *, employee_id=None, start_date=None, end_date=None, status=None):
        return []


def employee(employee_id="emp-1", *, break_minutes=60):
    return Employee(
        employee_id=employee_id,
        first_name="Taro",
        last_name="Yamada",
        employment_type=EmploymentType.FULL_TIME,
        email=f"{employee_id}@example.com",
        join_date=date(2020, 4, 1),
        base_salary=Decimal("300000"),
        default_break_minutes=break_minutes,
    )


def ctx(employee_id="emp-1", role=Role.EMPLOYEE):
    return EmployeeContext(employee_id=employee_id, name=employee_id, role=role)


@pytest.fixture()
def clock():
    return DeterministicClock(at_jst(DAY, time(9)))


@pytest.fixture()
def repo():
    return InMemoryAttendance()


@pytest.fixture()
def service(clock, repo):
    grants = [PaidLeaveGrant(grant_id="g1", employee_id="emp-1", grant_date=date(2023, 10, 1), days_granted=Decimal("10"))]
    return AttendanceService(
        repo,
        InMemoryEmployees(employee(), employee("emp-2")),
        InMemoryLeave(grants),
        clock=clock,
    )


def test_full_day_uses_clock_and_stores_split(service, clock):
    record = service.clock_in(ctx())
    assert record.clock_in == at_jst(DAY, time(9))
    assert record.version == 1

    clock.set(at_jst(DAY, time(19)))
    record = service.clock_out(ctx())

    assert record.status == AttendanceStatus.COMPLETED
    assert record.total_work_minutes == 10 * 60 - 60
    assert record.overtime_minutes == 540 - 450
    assert record.late_night_minutes == 0
    assert record.version == 2


def test_clock_in_twice_conflicts(service):
    service.clock_in(ctx())
    with pytest.raises(ConflictError):
        service.clock_in(ctx())


def test_unknown_employee_cannot_punch(service):
    with pytest.raises(NotFoundError):
        service.clock_in(ctx("ghost"))


def test_stale_write_is_rejected(service, repo, clock, monkeypatch):
    service.clock_in(ctx())
    fresh = repo.get_for_employee_and_date("emp-1", DAY)
    # another request wrote in between: this caller still holds version 0
    monkeypatch.setattr(repo, "get_for_employee_and_date", lambda employee_id, work_date: replace(fresh, version=0))

    clock.advance(hours=3)
    with pytest.raises(ConflictError):
        service.start_break(ctx())


def test_manual_correction_by_other_employee_is_forbidden(service):
    with pytest.raises(AuthorizationError):
        service.update_record(ctx("emp-2"), "emp-1", DAY, {"clockIn": "2024-04-01T09:00:00"})


def test_admin_backfills_a_day(service):
    admin = ctx("boss", Role.ADMIN)
    record = service.update_record(
        admin,
        "emp-1",
        DAY,
        {
            "clockIn": "2024-04-01T09:00:00+09:00",
            "clockOut": "2024-04-01T22:30:00+09:00",
            "breaks": [{"start": "2024-04-01T12:00:00+09:00", "end": "2024-04-01T13:00:00+09:00"}],
        },
    )
    assert record.status == AttendanceStatus.COMPLETED
    assert record.total_work_minutes == 750
    assert record.late_night_minutes == 30
    assert record.overtime_minutes == 750 - 450 - 30
    assert record.updated_by == "boss"


def test_correction_reports_nested_break_fields(service):
    with pytest.raises(ValidationError) as exc:
        service.update_record(
            ctx(),
            "emp-1",
            DAY,
            {"clockIn": "nope", "breaks": [{"end": "2024-04-01T13:00:00"}]},
        )
    assert "clockIn" in exc.value.field_errors
    assert "breaks[0].start" in exc.value.field_errors


def test_memo_needs_record_and_string(service):
    with pytest.raises(NotFoundError):
        service.update_memo(ctx(), "emp-1", DAY, "note")
    service.clock_in(ctx())
    with pytest.raises(ValidationError):
        service.update_memo(ctx(), "emp-1", DAY, 42)
    assert service.update_memo(ctx(), "emp-1", DAY, "train delay").memo == "train delay"


def test_monthly_records_include_summary_and_balance(service, clock):
    service.clock_in(ctx())
    clock.set(at_jst(DAY, time(18)))
    service.clock_out(ctx())

    month = service.get_my_records(ctx(), year=2024, month=4)
    assert len(month.records) == 1
    assert month.summary.actual_work_minutes == 480
    assert month.summary.weekday_work_days == 1
    assert month.paid_leave.remaining == Decimal("10")

    with pytest.raises(AuthorizationError):
        service.get_my_records(ctx("emp-2"), year=2024, month=4, employee_id="emp-1")
    with pytest.raises(ValidationError):
        service.get_my_records(ctx(), year=2024, month=13)


def test_monthly_records_reject_out_of_range_year(service):
    with pytest.raises(ValidationError) as exc:
        service.get_my_records(ctx(), year=99999, month=13)
    assert set(exc.value.field_errors) == {"year", "month"}


def test_admin_lists_logs_across_employees(service, clock):
    for employee_id in ("emp-2", "emp-1"):
        clock.set(at_jst(DAY, time(9)))
        service.clock_in(ctx(employee_id))
    clock.set(at_jst(date(2024, 4, 2), time(9)))
    service.clock_in(ctx("emp-1"))

    admin = ctx("boss", Role.ADMIN)
    logs = service.list_logs(admin, start_date=DAY, end_date=date(2024, 4, 30))
    assert [(log.record.work_date, log.record.employee_id) for log in logs] == [
        (DAY, "emp-1"),
        (DAY, "emp-2"),
        (date(2024, 4, 2), "emp-1"),
    ]

    only_first_day = service.list_logs(admin, start_date=DAY, end_date=DAY, employee_id="emp-2")
    assert [log.record.employee_id for log in only_first_day] == ["emp-2"]
    assert only_first_day[0].employee_name == "Yamada Taro"


def test_log_list_is_admin_only_and_checks_range(service):
    with pytest.raises(AuthorizationError):
        service.list_logs(ctx(), start_date=DAY, end_date=DAY)

    admin = ctx("boss", Role.ADMIN)
    with pytest.raises(ValidationError) as exc:
        service.list_logs(admin, start_date=DAY, end_date=date(2024, 3, 31))
    assert "endDate" in exc.value.field_errors
    with pytest.raises(NotFoundError):
        service.list_logs(admin, start_date=DAY, end_date=DAY, employee_id="ghost")
