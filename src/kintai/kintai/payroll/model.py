from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Union

from ..core.enums import EmploymentType, StatementType

_ZERO = Decimal("0")


@dataclass(frozen=True)
class SalaryDetail:
    """Monthly payslip snapshot. Overtime figures are minutes, money is yen."""

    working_days: Decimal
    holiday_work: Decimal
    paid_leave: Decimal
    paid_leave_remaining: Decimal
    normal_overtime: int
    late_night_overtime: int
    total_work_minutes: int
    base_salary: Decimal
    overtime_allowance: Decimal
    late_night_allowance: Decimal
    allowances: Mapping[str, Decimal]
    total_earnings: Decimal
    deductions: Mapping[str, Decimal]
    total_deductions: Decimal
    net_pay: Decimal

    @property
    def expected_total_earnings(self) -> Decimal:
        return (
            self.base_salary
            + self.overtime_allowance
            + self.late_night_allowance
            + sum(self.allowances.values(), _ZERO)
        )

    @property
    def expected_total_deductions(self) -> Decimal:
        return sum(self.deductions.values(), _ZERO)


@dataclass(frozen=True)
class BonusDetail:
    bonus_amount: Decimal
    health_insurance: Decimal
    pension: Decimal
    employment_insurance: Decimal
    income_tax: Decimal
    total_earnings: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    @property
    def expected_total_earnings(self) -> Decimal:
        return self.bonus_amount

    @property
    def expected_total_deductions(self) -> Decimal:
        return self.health_insurance + self.pension + self.employment_insurance + self.income_tax


PayrollDetail = Union[SalaryDetail, BonusDetail]


@dataclass(frozen=True)
class PayrollRecord:
    payroll_id: str
    employee_id: str
    year: int
    month: int
    statement_type: StatementType
    detail: PayrollDetail
    created_by: str
    updated_by: str
    created_at: datetime
    updated_at: datetime
    memo: Optional[str] = None
    is_active: bool = True
    supersedes: Optional[str] = None


@dataclass(frozen=True)
class SalaryInputs:
    """Period aggregates for one employee and month."""

    employment_type: EmploymentType
    base_rate: Decimal
    actual_work_minutes: int
    normal_overtime_minutes: int
    late_night_minutes: int
    allowances: Mapping[str, Decimal] = field(default_factory=dict)
    overtime_allowance_ids: frozenset[str] = frozenset()
    deductions: Mapping[str, Decimal] = field(default_factory=dict)
    working_days: Decimal = _ZERO
    holiday_work: Decimal = _ZERO
    paid_leave: Decimal = _ZERO
    paid_leave_remaining: Decimal = _ZERO


@dataclass(frozen=True)
class BonusInputs:
    bonus_amount: Decimal
    health_insurance: Decimal = _ZERO
    pension: Decimal = _ZERO
    employment_insurance: Decimal = _ZERO
    income_tax: Decimal = _ZERO
