from __future__ import annotations

from ...core.enums import StatementType
from ..model import BonusDetail, BonusInputs
from .base import PayrollCalculator


class BonusPayrollCalculator(PayrollCalculator):
    """Bonus statement: no overtime, same totals law."""

    statement_type = StatementType.BONUS

    def calculate(self, inputs: BonusInputs) -> BonusDetail:
        total_deductions = inputs.health_insurance + inputs.pension + inputs.employment_insurance + inputs.income_tax
        return BonusDetail(
            bonus_amount=inputs.bonus_amount,
            health_insurance=inputs.health_insurance,
            pension=inputs.pension,
            employment_insurance=inputs.employment_insurance,
            income_tax=inputs.income_tax,
            total_earnings=inputs.bonus_amount,
            total_deductions=total_deductions,
            net_pay=inputs.bonus_amount - total_deductions,
        )
