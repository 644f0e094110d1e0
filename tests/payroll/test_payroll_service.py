from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from kintai.attendance.model import AttendanceRecord
from kintai.common.clock import DeterministicClock
from kintai.common.datetime_utils import at_jst
from kintai.core.context import EmployeeContext
from kintai.core.enums import AttendanceStatus, EmploymentType, LeaveStatus, LeaveType, Role, StatementType
from kintai.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from kintai.employees.model import Employee
from kintai.leave.model import LeaveRequest, PaidLeaveGrant
from kintai.masters.model import AllowanceMaster, DeductionMaster
from kintai.payroll.model import BonusDetail, SalaryDetail
from kintai.payroll.service import PayrollService, parse_payroll_draft


class InMemoryPayroll:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def _id(self):
        payroll_id = f"pay-{self._next_id}"
        self._next_id += 1
        return payroll_id

    def get(self, payroll_id):
        return self.rows.get(payroll_id)

    def find_active(self, employee_id, year, month, statement_type):
        for r in self.rows.values():
            if (r.employee_id, r.year, r.month, r.statement_type, r.is_active) == (
                employee_id,
                year,
                month,
                statement_type,
                True,
            ):
                return r
        return None

    def list_records(self, *, employee_id=None, fiscal_year=None, year=None, month=None):
        rows = [r for r in self.rows.values() if r.is_active]
        if employee_id is not None:
            rows = [r for r in rows if r.employee_id == employee_id]
        if year is not None:
            rows = [r for r in rows if r.year == year]
        if month is not None:
            rows = [r for r in rows if r.month == month]
        return sorted(rows, key=lambda r: (r.year, r.month), reverse=True)

    def create(self, record):
        # same guard as the unique key on active periods
        if any(
            r.is_active and (r.employee_id, r.year, r.month, r.statement_type)
            == (record.employee_id, record.year, record.month, record.statement_type)
            for r in self.rows.values()
        ):
            raise ConflictError("Record already exists")
        created = replace(record, payroll_id=self._id(), is_active=True)
        self.rows[created.payroll_id] = created
        return created

    def supersede(self, old, new):
        if not self.rows[old.payroll_id].is_active:
            raise ConflictError("statement already superseded")
        self.rows[old.payroll_id] = replace(self.rows[old.payroll_id], is_active=False)
        return self.create(replace(new, supersedes=old.payroll_id))

    def save_memo(self, record):
        self.rows[record.payroll_id] = record
        return record


class InMemoryEmployees:
    def __init__(self, *employees):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id):
        return self._by_id.get(employee_id)


class InMemoryMasters:
    def __init__(self, allowances=(), deductions=()):
        self._allowances = {a.allowance_id: a for a in allowances}
        self._deductions = {d.deduction_id: d for d in deductions}

    def get_allowance(self, allowance_id):
        return self._allowances.get(allowance_id)

    def get_deduction(self, deduction_id):
        return self._deductions.get(deduction_id)


class InMemoryAttendance:
    def __init__(self, *records):
        self.records = list(records)

    def list_for_employee(self, employee_id, *, start_date, end_date):
        return [r for r in self.records if r.employee_id == employee_id and start_date <= r.work_date <= end_date]


class InMemoryLeave:
    def __init__(self, grants=(), requests=()):
        self.grants = list(grants)
        self.requests = list(requests)

    def list_grants(self, employee_id):
        return [g for g in self.grants if g.employee_id == employee_id]

    def list_requests(self, *, employee_id=None, start_date=None, end_date=None, status=None):
        return [r for r in self.requests if employee_id is None or r.employee_id == employee_id]


ADMIN = EmployeeContext(employee_id="boss", name="boss", role=Role.ADMIN)
WORKER = EmployeeContext(employee_id="emp-1", name="emp-1", role=Role.EMPLOYEE)
OTHER = EmployeeContext(employee_id="emp-2", name="emp-2", role=Role.EMPLOYEE)


def worked(day, minutes, overtime):
    return AttendanceRecord(
        employee_id="emp-1",
        work_date=day,
        clock_in=at_jst(day, time(9)),
        clock_out=at_jst(day, time(18)),
        status=AttendanceStatus.COMPLETED,
        total_work_minutes=minutes,
        overtime_minutes=overtime,
    )


@pytest.fixture()
def payroll_repo():
    return InMemoryPayroll()


@pytest.fixture()
def service(payroll_repo):
    employees = InMemoryEmployees(
        Employee(
            employee_id="emp-1",
            first_name="Taro",
            last_name="Yamada",
            employment_type=EmploymentType.FULL_TIME,
            email="taro@example.com",
            join_date=date(2020, 4, 1),
            base_salary=Decimal("300000"),
            allowance_ids=("a-pos",),
        ),
        Employee(
            employee_id="emp-2",
            first_name="Jiro",
            last_name="Suzuki",
            employment_type=EmploymentType.PART_TIME,
            email="jiro@example.com",
            join_date=date(2022, 4, 1),
            base_salary=Decimal("1100"),
        ),
    )
    masters = InMemoryMasters(
        allowances=[
            AllowanceMaster(allowance_id="a-pos", name="Position", include_in_overtime=True),
            AllowanceMaster(allowance_id="a-commute", name="Commute"),
        ],
        deductions=[DeductionMaster(deduction_id="d-tax", name="Resident tax")],
    )
    attendance = InMemoryAttendance(
        worked(date(2024, 4, 1), 540, 90),
        worked(date(2024, 4, 6), 480, 30),
        worked(date(2024, 5, 1), 480, 0),
    )
    requested = datetime(2024, 3, 20, 9, 0)
    leave = InMemoryLeave(
        grants=[
            PaidLeaveGrant(
                grant_id="g1",
                employee_id="emp-1",
                grant_date=date(2023, 10, 1),
                days_granted=Decimal("10"),
                days_consumed=Decimal("1"),
            )
        ],
        requests=[
            LeaveRequest(
                request_id="r1",
                employee_id="emp-1",
                start_date=date(2024, 4, 10),
                end_date=date(2024, 4, 10),
                leave_type=LeaveType.PAID,
                reason="errand",
                days=Decimal("1"),
                is_half_day=False,
                status=LeaveStatus.APPROVED,
                requested_at=requested,
                updated_at=requested,
            )
        ],
    )
    clock = DeterministicClock(at_jst(date(2024, 5, 25), time(10)))
    return PayrollService(payroll_repo, employees, masters, attendance, leave, clock=clock)


def salary_body(**overrides):
    detail = {
        "workingDays": 20,
        "holidayWork": 0,
        "paidLeave": 1,
        "paidLeaveRemaining": 9,
        "normalOvertime": 600,
        "lateNightOvertime": 60,
        "totalWorkMinutes": 9600,
        "baseSalary": 300000,
        "overtimeAllowance": 24400,
        "lateNightAllowance": 2928,
        "allowances": {"a-pos": 7500},
        "totalEarnings": 334828,
        "deductions": {"d-tax": 10000},
        "totalDeductions": 10000,
        "netPay": 324828,
    }
    detail.update(overrides)
    return {"employeeId": "emp-1", "year": 2024, "month": 4, "statementType": "salary", "detail": detail}


def test_draft_accepts_consistent_salary_detail():
    draft = parse_payroll_draft(salary_body())
    assert isinstance(draft.detail, SalaryDetail)
    assert draft.detail.allowances == {"a-pos": Decimal("7500")}


def test_draft_rejects_broken_totals_with_detail_prefix():
    with pytest.raises(ValidationError) as exc:
        parse_payroll_draft(salary_body(netPay=1))
    assert "detail.netPay" in exc.value.field_errors


def test_draft_reports_envelope_and_detail_fields_together():
    body = salary_body(baseSalary=-1)
    body["month"] = 13
    with pytest.raises(ValidationError) as exc:
        parse_payroll_draft(body)
    assert {"month", "detail.baseSalary"} <= set(exc.value.field_errors)


def test_bonus_detail_parses():
    draft = parse_payroll_draft(
        {
            "employeeId": "emp-1",
            "year": 2024,
            "month": 6,
            "statementType": "bonus",
            "detail": {
                "bonusAmount": 500000,
                "healthInsurance": 25000,
                "pension": 45750,
                "employmentInsurance": 3000,
                "incomeTax": 40000,
                "totalEarnings": 500000,
                "totalDeductions": 113750,
                "netPay": 386250,
            },
        }
    )
    assert isinstance(draft.detail, BonusDetail)


def test_negative_net_pay_is_accepted():
    draft = parse_payroll_draft(
        salary_body(
            deductions={"d-tax": 400000},
            totalDeductions=400000,
            netPay=-65172,
        )
    )
    assert draft.detail.net_pay == Decimal("-65172")



def test_non_finite_amounts_are_field_errors():
    with pytest.raises(ValidationError) as exc:
        parse_payroll_draft(salary_body(allowances={"a-pos": float("inf")}, netPay=float("nan")))
    assert {"detail.allowances.a-pos", "detail.netPay"} <= set(exc.value.field_errors)

    body = salary_body()
    body["statementType"] = "bonus"
    body["detail"] = {"bonusAmount": float("inf"), "totalEarnings": 0, "totalDeductions": 0, "netPay": 0}
    with pytest.raises(ValidationError) as exc:
        parse_payroll_draft(body)
    assert "detail.bonusAmount" in exc.value.field_errors

def test_create_then_duplicate_period_conflicts(service):
    created = service.create(ADMIN, salary_body())
    assert created.created_by == "boss"
    with pytest.raises(ConflictError):
        service.create(ADMIN, salary_body())


def test_racing_create_is_stopped_by_the_active_period_key(service, payroll_repo, monkeypatch):
    service.create(ADMIN, salary_body())
    # second writer passed the pre-check before the first one committed
    monkeypatch.setattr(payroll_repo, "find_active", lambda *args: None)
    with pytest.raises(ConflictError):
        service.create(ADMIN, salary_body())
    assert len([r for r in payroll_repo.rows.values() if r.is_active]) == 1


def test_only_admin_creates(service):
    with pytest.raises(AuthorizationError):
        service.create(WORKER, salary_body())


def test_unknown_line_item_is_a_field_error(service):
    with pytest.raises(ValidationError) as exc:
        service.create(
            ADMIN,
            salary_body(allowances={"a-pos": 7500, "ghost": 0}),
        )
    assert "detail.allowances.ghost" in exc.value.field_errors


def test_unknown_employee_is_not_found(service):
    body = salary_body()
    body["employeeId"] = "nobody"
    with pytest.raises(NotFoundError):
        service.create(ADMIN, body)


def test_update_supersedes_the_active_statement(service):
    created = service.create(ADMIN, salary_body())
    updated = service.update(
        ADMIN,
        created.payroll_id,
        salary_body(deductions={"d-tax": 12000}, totalDeductions=12000, netPay=322828),
    )

    assert updated.payroll_id != created.payroll_id
    assert updated.supersedes == created.payroll_id
    assert updated.detail.total_deductions == Decimal("12000")
    with pytest.raises(NotFoundError):
        service.get(ADMIN, created.payroll_id)
    assert [r.payroll_id for r in service.list_records(ADMIN)] == [updated.payroll_id]


def test_update_into_an_occupied_period_conflicts(service):
    april = service.create(ADMIN, salary_body())
    body = salary_body()
    body["month"] = 5
    may = service.create(ADMIN, body)

    moved = salary_body()
    with pytest.raises(ConflictError):
        service.update(ADMIN, may.payroll_id, moved)
    assert service.get(ADMIN, april.payroll_id).is_active


def test_memo_by_owner_or_admin_only(service):
    created = service.create(ADMIN, salary_body())

    assert service.update_memo(WORKER, created.payroll_id, "checked").memo == "checked"
    assert service.update_memo(ADMIN, created.payroll_id, None).memo is None
    with pytest.raises(AuthorizationError):
        service.update_memo(OTHER, created.payroll_id, "mine")
    with pytest.raises(ValidationError):
        service.update_memo(WORKER, created.payroll_id, 42)


def test_employees_see_only_their_payslips(service):
    created = service.create(ADMIN, salary_body())

    assert [r.payroll_id for r in service.list_records(WORKER)] == [created.payroll_id]
    assert service.list_records(OTHER) == []
    with pytest.raises(AuthorizationError):
        service.get(OTHER, created.payroll_id)
    with pytest.raises(AuthorizationError):
        service.list_records(OTHER, employee_id="emp-1")


def test_regenerate_salary_from_attendance_leave_and_masters(service):
    detail = service.regenerate(
        ADMIN,
        {
            "employeeId": "emp-1",
            "year": 2024,
            "month": 4,
            "allowances": {"a-pos": 7500},
            "deductions": {"d-tax": 10000},
        },
    )

    assert detail.working_days == Decimal("1")
    assert detail.holiday_work == Decimal("1")
    assert detail.total_work_minutes == 1020
    assert detail.normal_overtime == 120
    assert detail.overtime_allowance == Decimal("5000")
    assert detail.paid_leave == Decimal("1")
    assert detail.paid_leave_remaining == Decimal("9")
    assert detail.total_earnings == Decimal("312500")
    assert detail.net_pay == Decimal("302500")


def test_regenerate_defaults_assigned_allowances_to_zero(service):
    detail = service.regenerate(ADMIN, {"employeeId": "emp-1", "year": 2024, "month": 4})
    assert detail.allowances == {"a-pos": Decimal("0")}


def test_regenerate_rejects_unknown_deduction(service):
    with pytest.raises(ValidationError) as exc:
        service.regenerate(
            ADMIN,
            {"employeeId": "emp-1", "year": 2024, "month": 4, "deductions": {"ghost": 1}},
        )
    assert "deductions.ghost" in exc.value.field_errors


def test_regenerate_bonus(service):
    detail = service.regenerate(
        ADMIN,
        {
            "employeeId": "emp-2",
            "year": 2024,
            "month": 12,
            "statementType": StatementType.BONUS.value,
            "bonusAmount": 100000,
            "incomeTax": 5000,
        },
    )
    assert isinstance(detail, BonusDetail)
    assert detail.net_pay == Decimal("95000")


def test_listing_rejects_out_of_range_periods(service):
    with pytest.raises(ValidationError) as exc:
        service.list_records(ADMIN, fiscal_year=10**9, year=1, month=0)
    assert set(exc.value.field_errors) == {"fiscalYear", "year", "month"}
