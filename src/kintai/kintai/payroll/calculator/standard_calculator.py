from __future__ import annotations

from decimal import Decimal

from ...core.constants import (
    AVERAGE_WORKING_DAYS_PER_MONTH,
    LATE_NIGHT_PREMIUM,
    OVERTIME_PREMIUM,
    STANDARD_DAILY_HOURS,
)
from ...core.enums import EmploymentType, StatementType
from ..model import SalaryDetail, SalaryInputs
from .base import PayrollCalculator, ceil_yen, round_yen

_ZERO = Decimal("0")
_SIXTY = Decimal("60")


class StandardPayrollCalculator(PayrollCalculator):
    """Monthly salary statement.

    overtimeRate = ceil((base + overtime-included allowances) / 20.5 / 7.5)
    overtime     = ceil(rate * 1.25 * overtime minutes / 60)
    late night   = ceil(rate * 1.50 * late-night minutes / 60)
    """

    statement_type = StatementType.SALARY

    def base_salary(self, inputs: SalaryInputs) -> Decimal:
        if inputs.employment_type == EmploymentType.PART_TIME:
            return round_yen(inputs.base_rate * Decimal(inputs.actual_work_minutes) / _SIXTY)
        return inputs.base_rate

    def overtime_rate(self, base_salary: Decimal, inputs: SalaryInputs) -> Decimal:
        included = sum(
            (amount for allowance_id, amount in inputs.allowances.items() if allowance_id in inputs.overtime_allowance_ids),
            _ZERO,
        )
        return ceil_yen((base_salary + included) / AVERAGE_WORKING_DAYS_PER_MONTH / STANDARD_DAILY_HOURS)

    @staticmethod
    def premium_pay(rate: Decimal, premium: Decimal, minutes: int) -> Decimal:
        return ceil_yen(rate * premium * Decimal(minutes) / _SIXTY)

    def calculate(self, inputs: SalaryInputs) -> SalaryDetail:
        base = self.base_salary(inputs)
        rate = self.overtime_rate(base, inputs)
        overtime = self.premium_pay(rate, OVERTIME_PREMIUM, inputs.normal_overtime_minutes)
        late_night = self.premium_pay(rate, LATE_NIGHT_PREMIUM, inputs.late_night_minutes)

        allowances = dict(inputs.allowances)
        deductions = dict(inputs.deductions)
        total_earnings = base + overtime + late_night + sum(allowances.values(), _ZERO)
        total_deductions = sum(deductions.values(), _ZERO)

        return SalaryDetail(
            working_days=inputs.working_days,
            holiday_work=inputs.holiday_work,
            paid_leave=inputs.paid_leave,
            paid_leave_remaining=inputs.paid_leave_remaining,
            normal_overtime=inputs.normal_overtime_minutes,
            late_night_overtime=inputs.late_night_minutes,
            total_work_minutes=inputs.actual_work_minutes,
            base_salary=base,
            overtime_allowance=overtime,
            late_night_allowance=late_night,
            allowances=allowances,
            total_earnings=total_earnings,
            deductions=deductions,
            total_deductions=total_deductions,
            net_pay=total_earnings - total_deductions,
        )
