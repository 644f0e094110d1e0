from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Any

from ...core.enums import StatementType
from ..model import PayrollDetail

YEN = Decimal("1")


def ceil_yen(value: Decimal) -> Decimal:
    return value.quantize(YEN, rounding=ROUND_CEILING)


def round_yen(value: Decimal) -> Decimal:
    return value.quantize(YEN, rounding=ROUND_HALF_UP)


def totals_hold(detail: PayrollDetail) -> dict[str, str]:
    """Fields whose stored total disagrees with the aggregation law.

    totalEarnings and totalDeductions must equal the sum of their parts and
    netPay must equal their difference; a negative netPay is valid.
    """
    problems: dict[str, str] = {}
    if detail.total_earnings != detail.expected_total_earnings:
        problems["totalEarnings"] = f"totalEarnings must equal {detail.expected_total_earnings}"
    if detail.total_deductions != detail.expected_total_deductions:
        problems["totalDeductions"] = f"totalDeductions must equal {detail.expected_total_deductions}"
    if detail.net_pay != detail.total_earnings - detail.total_deductions:
        problems["netPay"] = "netPay must equal totalEarnings - totalDeductions"
    return problems


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    statement_type: StatementType

    @abstractmethod
    def calculate(self, inputs: Any) -> PayrollDetail:
        raise NotImplementedError
