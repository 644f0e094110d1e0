from decimal import Decimal

import pytest

from kintai.common.validators import (
    FieldErrors,
    check_period,
    is_color,
    is_email,
    read_decimal,
    read_enum,
    read_int,
    read_text,
)
from kintai.core.enums import LeaveType
from kintai.core.exceptions import ValidationError


def test_all_offending_fields_are_reported_at_once():
    errors = FieldErrors()
    payload = {"name": "", "days": "x", "leaveType": "holiday", "month": 13}

    read_text(errors, payload, "name")
    read_decimal(errors, payload, "days")
    read_enum(errors, payload, "leaveType", LeaveType)
    read_int(errors, payload, "month", low=1, high=12)

    with pytest.raises(ValidationError) as exc:
        errors.raise_if_any()
    assert set(exc.value.field_errors) == {"name", "days", "leaveType", "month"}


def test_read_decimal_keeps_exact_value():
    errors = FieldErrors()
    assert read_decimal(errors, {"days": 0.5}, "days", positive=True) == Decimal("0.5")
    assert read_decimal(errors, {"days": 0}, "days", positive=True) is None
    assert errors.has("days")


def test_read_decimal_rejects_booleans():
    errors = FieldErrors()
    assert read_decimal(errors, {"baseSalary": True}, "baseSalary") is None
    assert errors.as_dict() == {"baseSalary": ["baseSalary must be a number"]}


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN")])
def test_read_decimal_rejects_non_finite_numbers(value):
    errors = FieldErrors()
    assert read_decimal(errors, {"amount": value}, "amount", minimum=Decimal("0")) is None
    assert errors.as_dict() == {"amount": ["amount must be a finite number"]}


def test_check_period_collects_every_bad_part():
    check_period(year=2024, month=4, fiscal_year=2024)
    check_period()
    with pytest.raises(ValidationError) as exc:
        check_period(year=1999, month=13, fiscal_year=3001)
    assert set(exc.value.field_errors) == {"year", "month", "fiscalYear"}


def test_merge_prefixes_nested_fields():
    inner = FieldErrors()
    inner.add("start", "start is required")
    outer = FieldErrors()
    outer.merge(inner, prefix="breaks[1].")
    assert outer.as_dict() == {"breaks[1].start": ["start is required"]}


def test_format_helpers():
    assert is_email("taro@example.co.jp")
    assert not is_email("taro@example")
    assert is_color("#1A2b3C")
    assert not is_color("1A2B3C")
    assert not is_color("#12345")
