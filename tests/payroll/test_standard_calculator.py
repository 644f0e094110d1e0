from decimal import Decimal

from kintai.core.enums import EmploymentType, StatementType
from kintai.payroll.calculator.base import totals_hold
from kintai.payroll.calculator.bonus_calculator import BonusPayrollCalculator
from kintai.payroll.calculator.factory import PayrollCalculatorFactory
from kintai.payroll.calculator.standard_calculator import StandardPayrollCalculator
from kintai.payroll.model import BonusInputs, SalaryInputs


def full_time(**kwargs):
    values = dict(
        employment_type=EmploymentType.FULL_TIME,
        base_rate=Decimal("300000"),
        actual_work_minutes=9600,
        normal_overtime_minutes=0,
        late_night_minutes=0,
    )
    values.update(kwargs)
    return SalaryInputs(**values)


def test_overtime_rate_rounds_up_to_the_yen():
    calc = StandardPayrollCalculator()
    assert calc.overtime_rate(Decimal("300000"), full_time()) == Decimal("1952")


def test_overtime_and_late_night_premiums():
    detail = StandardPayrollCalculator().calculate(full_time(normal_overtime_minutes=600, late_night_minutes=60))

    assert detail.overtime_allowance == Decimal("24400")
    assert detail.late_night_allowance == Decimal("2928")
    assert detail.total_earnings == Decimal("327328")
    assert totals_hold(detail) == {}


def test_only_flagged_allowances_feed_the_overtime_rate():
    inputs = full_time(
        allowances={"position": Decimal("7500"), "commute": Decimal("15000")},
        overtime_allowance_ids=frozenset({"position"}),
    )
    calc = StandardPayrollCalculator()
    assert calc.overtime_rate(Decimal("300000"), inputs) == Decimal("2000")

    detail = calc.calculate(inputs)
    assert detail.total_earnings == Decimal("322500")


def test_part_time_base_is_hourly_rate_times_hours_rounded_half_up():
    inputs = SalaryInputs(
        employment_type=EmploymentType.PART_TIME,
        base_rate=Decimal("1001"),
        actual_work_minutes=30,
        normal_overtime_minutes=0,
        late_night_minutes=0,
    )
    assert StandardPayrollCalculator().calculate(inputs).base_salary == Decimal("501")


def test_negative_net_pay_is_kept():
    detail = StandardPayrollCalculator().calculate(
        full_time(base_rate=Decimal("1000"), deductions={"rent": Decimal("50000")})
    )
    assert detail.net_pay == Decimal("-49000")
    assert totals_hold(detail) == {}


def test_bonus_totals():
    detail = BonusPayrollCalculator().calculate(
        BonusInputs(
            bonus_amount=Decimal("500000"),
            health_insurance=Decimal("25000"),
            pension=Decimal("45750"),
            employment_insurance=Decimal("3000"),
            income_tax=Decimal("40000"),
        )
    )
    assert detail.total_deductions == Decimal("113750")
    assert detail.net_pay == Decimal("386250")
    assert totals_hold(detail) == {}


def test_factory_picks_calculator_by_statement_type():
    factory = PayrollCalculatorFactory()
    assert isinstance(factory.for_statement(StatementType.BONUS), BonusPayrollCalculator)
    assert isinstance(factory.for_statement(StatementType.SALARY), StandardPayrollCalculator)
