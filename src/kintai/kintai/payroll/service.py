from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..attendance.summary import summarize_month
from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import month_range
from ..common.validators import FieldErrors, check_period, read_decimal, read_enum, read_int, read_text
from ..core.constants import MAX_PAYROLL_YEAR, MIN_PAYROLL_YEAR
from ..core.context import EmployeeContext
from ..core.enums import LeaveStatus, LeaveType, StatementType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leave.ledger import balance_of
from ..leave.repository import LeaveRepository
from ..masters.repository import MasterRepository
from .calculator.base import totals_hold
from .calculator.factory import PayrollCalculatorFactory
from .model import BonusDetail, BonusInputs, PayrollDetail, PayrollRecord, SalaryDetail, SalaryInputs
from .repository import PayrollRepository

log = logging.getLogger(__name__)

_ZERO = Decimal("0")

_SALARY_DAY_FIELDS = (
    ("working_days", "workingDays"),
    ("holiday_work", "holidayWork"),
    ("paid_leave", "paidLeave"),
    ("paid_leave_remaining", "paidLeaveRemaining"),
)
_SALARY_MINUTE_FIELDS = (
    ("normal_overtime", "normalOvertime"),
    ("late_night_overtime", "lateNightOvertime"),
    ("total_work_minutes", "totalWorkMinutes"),
)
_SALARY_MONEY_FIELDS = (
    ("base_salary", "baseSalary"),
    ("overtime_allowance", "overtimeAllowance"),
    ("late_night_allowance", "lateNightAllowance"),
    ("total_earnings", "totalEarnings"),
    ("total_deductions", "totalDeductions"),
)
_BONUS_MONEY_FIELDS = (
    ("bonus_amount", "bonusAmount"),
    ("health_insurance", "healthInsurance"),
    ("pension", "pension"),
    ("employment_insurance", "employmentInsurance"),
    ("income_tax", "incomeTax"),
    ("total_earnings", "totalEarnings"),
    ("total_deductions", "totalDeductions"),
)


@dataclass(frozen=True)
class PayrollDraft:
    employee_id: str
    year: int
    month: int
    statement_type: StatementType
    detail: PayrollDetail


def _read_amounts(errors: FieldErrors, payload: Mapping[str, Any], field: str) -> dict[str, Decimal]:
    raw = payload.get(field)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        errors.add(field, f"{field} must be an object of id to amount")
        return {}
    amounts: dict[str, Decimal] = {}
    entry_errors = FieldErrors()
    for key in raw:
        amount = read_decimal(entry_errors, raw, key, minimum=_ZERO)
        if amount is not None:
            amounts[str(key)] = amount
    errors.merge(entry_errors, prefix=f"{field}.")
    return amounts


def _read_detail(errors: FieldErrors, statement_type: StatementType, raw: Mapping[str, Any]) -> Optional[PayrollDetail]:
    values: dict[str, Any] = {}
    if statement_type == StatementType.SALARY:
        for attr, field in _SALARY_DAY_FIELDS + _SALARY_MONEY_FIELDS:
            values[attr] = read_decimal(errors, raw, field, minimum=_ZERO)
        for attr, field in _SALARY_MINUTE_FIELDS:
            if field == "totalWorkMinutes" and raw.get(field) is None:
                values[attr] = 0
                continue
            values[attr] = read_int(errors, raw, field, low=0)
        values["allowances"] = _read_amounts(errors, raw, "allowances")
        values["deductions"] = _read_amounts(errors, raw, "deductions")
    else:
        for attr, field in _BONUS_MONEY_FIELDS:
            values[attr] = read_decimal(errors, raw, field, minimum=_ZERO)
    values["net_pay"] = read_decimal(errors, raw, "netPay")

    if errors:
        return None
    if statement_type == StatementType.SALARY:
        return SalaryDetail(**values)
    return BonusDetail(**values)


def parse_payroll_draft(payload: Mapping[str, Any]) -> PayrollDraft:
    """Validate a create/update body; detail fields are reported as ``detail.<field>``."""
    errors = FieldErrors()
    employee_id = read_text(errors, payload, "employeeId")
    year = read_int(errors, payload, "year", low=MIN_PAYROLL_YEAR, high=MAX_PAYROLL_YEAR)
    month = read_int(errors, payload, "month", low=1, high=12)
    statement_type = read_enum(errors, payload, "statementType", StatementType)

    raw = payload.get("detail")
    detail = None
    if not isinstance(raw, Mapping):
        errors.add("detail", "detail is required and must be an object")
    elif statement_type is not None:
        detail_errors = FieldErrors()
        detail = _read_detail(detail_errors, statement_type, raw)
        if detail is not None:
            for field, message in totals_hold(detail).items():
                detail_errors.add(field, message)
        errors.merge(detail_errors, prefix="detail.")
    errors.raise_if_any("Invalid payroll statement")

    return PayrollDraft(
        employee_id=employee_id,
        year=year,
        month=month,
        statement_type=statement_type,
        detail=detail,
    )


class PayrollService:
    """Payroll statements.

    Stored details are snapshots of what the administrator submitted. The
    engine only runs on an explicit ``regenerate`` call, whose result the
    caller reviews and submits through ``create`` or ``update``.
    """

    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        masters: MasterRepository,
        attendance: AttendanceRepository,
        leave: LeaveRepository,
        *,
        clock: Optional[Clock] = None,
        factory: Optional[PayrollCalculatorFactory] = None,
    ):
        self._payroll = payroll
        self._employees = employees
        self._masters = masters
        self._attendance = attendance
        self._leave = leave
        self._clock = clock or SystemClock()
        self._factory = factory or PayrollCalculatorFactory()

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee not found: {employee_id}")
        return employee

    def _active(self, payroll_id: str) -> PayrollRecord:
        record = self._payroll.get(payroll_id)
        if not record or not record.is_active:
            raise NotFoundError(f"Payroll statement not found: {payroll_id}")
        return record

    def _check_line_items(self, detail: PayrollDetail) -> None:
        if not isinstance(detail, SalaryDetail):
            return
        errors = FieldErrors()
        for allowance_id in detail.allowances:
            if not self._masters.get_allowance(allowance_id):
                errors.add(f"detail.allowances.{allowance_id}", "unknown allowance")
        for deduction_id in detail.deductions:
            if not self._masters.get_deduction(deduction_id):
                errors.add(f"detail.deductions.{deduction_id}", "unknown deduction")
        errors.raise_if_any("Invalid payroll statement")

    def _draft(self, payload: Mapping[str, Any]) -> PayrollDraft:
        draft = parse_payroll_draft(payload)
        self._employee(draft.employee_id)
        self._check_line_items(draft.detail)
        return draft

    def create(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> PayrollRecord:
        ctx.require_admin()
        draft = self._draft(payload)
        if self._payroll.find_active(draft.employee_id, draft.year, draft.month, draft.statement_type):
            raise ConflictError(
                f"A {draft.statement_type.value} statement for {draft.year}-{draft.month:02d} already exists"
            )
        now = self._clock.now()
        created = self._payroll.create(
            PayrollRecord(
                payroll_id="",
                employee_id=draft.employee_id,
                year=draft.year,
                month=draft.month,
                statement_type=draft.statement_type,
                detail=draft.detail,
                created_by=ctx.employee_id,
                updated_by=ctx.employee_id,
                created_at=now,
                updated_at=now,
            )
        )
        log.info(
            "payroll created id=%s employee=%s period=%s-%02d type=%s net=%s",
            created.payroll_id,
            created.employee_id,
            created.year,
            created.month,
            created.statement_type.value,
            created.detail.net_pay,
        )
        return created

    def update(self, ctx: EmployeeContext, payroll_id: str, payload: Mapping[str, Any]) -> PayrollRecord:
        """Supersede the statement: the old row is deactivated and a new version inserted."""
        ctx.require_admin()
        current = self._active(payroll_id)
        draft = self._draft(payload)
        clash = self._payroll.find_active(draft.employee_id, draft.year, draft.month, draft.statement_type)
        if clash and clash.payroll_id != payroll_id:
            raise ConflictError(
                f"A {draft.statement_type.value} statement for {draft.year}-{draft.month:02d} already exists"
            )
        replacement = replace(
            current,
            payroll_id="",
            employee_id=draft.employee_id,
            year=draft.year,
            month=draft.month,
            statement_type=draft.statement_type,
            detail=draft.detail,
            updated_by=ctx.employee_id,
            updated_at=self._clock.now(),
            supersedes=current.payroll_id,
        )
        saved = self._payroll.supersede(current, replacement)
        log.info("payroll superseded old=%s new=%s by=%s", payroll_id, saved.payroll_id, ctx.employee_id)
        return saved

    def update_memo(self, ctx: EmployeeContext, payroll_id: str, memo: Optional[str]) -> PayrollRecord:
        if memo is not None and not isinstance(memo, str):
            raise ValidationError("Invalid memo", {"memo": ["memo must be a string or null"]})
        current = self._active(payroll_id)
        ctx.require_self_or_admin(current.employee_id, action="edit the payslip memo")
        return self._payroll.save_memo(
            replace(current, memo=memo, updated_by=ctx.employee_id, updated_at=self._clock.now())
        )

    def get(self, ctx: EmployeeContext, payroll_id: str) -> PayrollRecord:
        record = self._active(payroll_id)
        ctx.require_self_or_admin(record.employee_id, action="view the payslip")
        return record

    def list_records(
        self,
        ctx: EmployeeContext,
        *,
        employee_id: Optional[str] = None,
        fiscal_year: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Sequence[PayrollRecord]:
        if not ctx.is_admin:
            if employee_id and employee_id != ctx.employee_id:
                ctx.require_self_or_admin(employee_id, action="list payslips")
            employee_id = ctx.employee_id
        check_period(year=year, month=month, fiscal_year=fiscal_year)
        return self._payroll.list_records(employee_id=employee_id, fiscal_year=fiscal_year, year=year, month=month)

    # -------- Engine --------
    def _salary_inputs(self, employee: Employee, year: int, month: int, payload: Mapping[str, Any]) -> SalaryInputs:
        errors = FieldErrors()
        allowances = {allowance_id: _ZERO for allowance_id in employee.allowance_ids}
        allowances.update(_read_amounts(errors, payload, "allowances"))
        deductions = _read_amounts(errors, payload, "deductions")
        errors.raise_if_any("Invalid regenerate request")

        overtime_ids = set()
        for allowance_id in allowances:
            master = self._masters.get_allowance(allowance_id)
            if not master:
                errors.add(f"allowances.{allowance_id}", "unknown allowance")
            elif master.include_in_overtime:
                overtime_ids.add(allowance_id)
        for deduction_id in deductions:
            if not self._masters.get_deduction(deduction_id):
                errors.add(f"deductions.{deduction_id}", "unknown deduction")
        errors.raise_if_any("Invalid regenerate request")

        start, end = month_range(year, month)
        records = self._attendance.list_for_employee(employee.employee_id, start_date=start, end_date=end)
        summary = summarize_month(employee.employee_id, year, month, records)

        requests = self._leave.list_requests(employee_id=employee.employee_id)
        paid_taken = sum(
            (
                r.days
                for r in requests
                if r.leave_type == LeaveType.PAID and r.status == LeaveStatus.APPROVED and start <= r.start_date <= end
            ),
            _ZERO,
        )
        balance = balance_of(employee.employee_id, self._leave.list_grants(employee.employee_id), requests)

        return SalaryInputs(
            employment_type=employee.employment_type,
            base_rate=employee.base_salary,
            actual_work_minutes=summary.actual_work_minutes,
            normal_overtime_minutes=summary.normal_overtime_minutes,
            late_night_minutes=summary.late_night_minutes,
            allowances=allowances,
            overtime_allowance_ids=frozenset(overtime_ids),
            deductions=deductions,
            working_days=Decimal(summary.weekday_work_days),
            holiday_work=Decimal(summary.holiday_work_days),
            paid_leave=paid_taken,
            paid_leave_remaining=balance.remaining,
        )

    @staticmethod
    def _bonus_inputs(payload: Mapping[str, Any]) -> BonusInputs:
        errors = FieldErrors()
        bonus = read_decimal(errors, payload, "bonusAmount", minimum=_ZERO)
        optional = {}
        for attr, field in _BONUS_MONEY_FIELDS[1:5]:
            value = read_decimal(errors, payload, field, required=False, minimum=_ZERO)
            optional[attr] = _ZERO if value is None else value
        errors.raise_if_any("Invalid regenerate request")
        return BonusInputs(bonus_amount=bonus, **optional)

    def regenerate(self, ctx: EmployeeContext, payload: Mapping[str, Any]) -> PayrollDetail:
        """Compute a fresh detail for review. Nothing is stored."""
        ctx.require_admin()
        errors = FieldErrors()
        employee_id = read_text(errors, payload, "employeeId")
        year = read_int(errors, payload, "year", low=MIN_PAYROLL_YEAR, high=MAX_PAYROLL_YEAR)
        month = read_int(errors, payload, "month", low=1, high=12)
        statement_type = StatementType.SALARY
        if payload.get("statementType") is not None:
            statement_type = read_enum(errors, payload, "statementType", StatementType)
        errors.raise_if_any("Invalid regenerate request")

        employee = self._employee(employee_id)
        calculator = self._factory.for_statement(statement_type)
        if statement_type == StatementType.BONUS:
            detail = calculator.calculate(self._bonus_inputs(payload))
        else:
            detail = calculator.calculate(self._salary_inputs(employee, year, month, payload))
        log.info(
            "payroll regenerated employee=%s period=%s-%02d type=%s net=%s",
            employee_id,
            year,
            month,
            statement_type.value,
            detail.net_pay,
        )
        return detail
