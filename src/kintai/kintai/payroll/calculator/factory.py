from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import StatementType
from .base import PayrollCalculator
from .bonus_calculator import BonusPayrollCalculator
from .standard_calculator import StandardPayrollCalculator


@dataclass
class PayrollCalculatorFactory:
    """Factory Pattern: choose the calculator for a statement type."""

    def for_statement(self, statement_type: StatementType) -> PayrollCalculator:
        if statement_type == StatementType.BONUS:
            return BonusPayrollCalculator()
        return StandardPayrollCalculator()
