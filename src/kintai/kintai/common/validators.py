from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from ..core.constants import MAX_PAYROLL_YEAR, MIN_PAYROLL_YEAR
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date, parse_iso_datetime

E = TypeVar("E", bound=Enum)

_MISSING = object()
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class FieldErrors:
    """Collects every offending field before raising a single ValidationError."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def has(self, field: str) -> bool:
        return field in self._errors

    def __bool__(self) -> bool:
        return bool(self._errors)

    def as_dict(self) -> dict[str, list[str]]:
        return {k: list(v) for k, v in self._errors.items()}

    def merge(self, other: "FieldErrors", *, prefix: str) -> None:
        for field, messages in other._errors.items():
            for message in messages:
                self.add(f"{prefix}{field}", message)

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self._errors:
            raise ValidationError(message, self.as_dict())


def present(payload: Mapping[str, Any], field: str) -> bool:
    return payload.get(field, _MISSING) is not _MISSING


def read_text(
    errors: FieldErrors,
    payload: Mapping[str, Any],
    field: str,
    *,
    required: bool = True,
    max_length: Optional[int] = None,
) -> Optional[str]:
    value = payload.get(field)
    if value is None:
        if required:
            errors.add(field, f"{field} is required")
        return None
    if not isinstance(value, str) or (required and not value.strip()):
        errors.add(field, f"{field} must be a non-empty string")
        return None
    if max_length is not None and len(value) > max_length:
        errors.add(field, f"{field} must be at most {max_length} characters")
        return None
    return value.strip() if required else value


def read_date(errors: FieldErrors, payload: Mapping[str, Any], field: str, *, required: bool = True) -> Optional[date]:
    value = payload.get(field)
    if value is None:
        if required:
            errors.add(field, f"{field} is required (YYYY-MM-DD)")
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        errors.add(field, f"{field} must be formatted as YYYY-MM-DD")
        return None


def read_datetime(errors: FieldErrors, payload: Mapping[str, Any], field: str, *, required: bool = True) -> Optional[datetime]:
    value = payload.get(field)
    if value is None:
        if required:
            errors.add(field, f"{field} is required (ISO 8601)")
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(value)
    except (TypeError, ValueError):
        errors.add(field, f"{field} must be an ISO 8601 timestamp")
        return None


def read_decimal(
    errors: FieldErrors,
    payload: Mapping[str, Any],
    field: str,
    *,
    required: bool = True,
    minimum: Optional[Decimal] = None,
    positive: bool = False,
) -> Optional[Decimal]:
    value = payload.get(field)
    if value is None:
        if required:
            errors.add(field, f"{field} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        errors.add(field, f"{field} must be a number")
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        errors.add(field, f"{field} must be a number")
        return None
    if not number.is_finite():
        errors.add(field, f"{field} must be a finite number")
        return None
    if positive and number <= 0:
        errors.add(field, f"{field} must be a positive number")
        return None
    if minimum is not None and number < minimum:
        errors.add(field, f"{field} must be at least {minimum}")
        return None
    return number


def read_int(
    errors: FieldErrors,
    payload: Mapping[str, Any],
    field: str,
    *,
    low: Optional[int] = None,
    high: Optional[int] = None,
) -> Optional[int]:
    value = payload.get(field)
    if isinstance(value, bool) or not isinstance(value, int):
        errors.add(field, f"{field} must be an integer")
        return None
    if low is not None and value < low:
        errors.add(field, f"{field} must be at least {low}" if high is None else f"{field} must be between {low} and {high}")
        return None
    if high is not None and value > high:
        errors.add(field, f"{field} must be at most {high}" if low is None else f"{field} must be between {low} and {high}")
        return None
    return value


def check_period(
    *, year: Optional[int] = None, month: Optional[int] = None, fiscal_year: Optional[int] = None
) -> None:
    """Range-check query-string period parameters; None means the parameter was not given."""
    errors = FieldErrors()
    for field, value in (("year", year), ("fiscalYear", fiscal_year)):
        if value is not None and not MIN_PAYROLL_YEAR <= value <= MAX_PAYROLL_YEAR:
            errors.add(field, f"{field} must be between {MIN_PAYROLL_YEAR} and {MAX_PAYROLL_YEAR}")
    if month is not None and not 1 <= month <= 12:
        errors.add("month", "month must be between 1 and 12")
    errors.raise_if_any("Invalid period")


def read_bool(errors: FieldErrors, payload: Mapping[str, Any], field: str, *, default: bool = False) -> bool:
    value = payload.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        errors.add(field, f"{field} must be a boolean")
        return default
    return value


def read_enum(errors: FieldErrors, payload: Mapping[str, Any], field: str, enum_cls: Type[E]) -> Optional[E]:
    value = payload.get(field)
    if value is None or value == "":
        errors.add(field, f"{field} is required")
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        errors.add(field, f"{field} must be one of {allowed}")
        return None


def is_email(value: str) -> bool:
    return bool(_EMAIL.match(value))


def is_color(value: str) -> bool:
    return bool(_COLOR.match(value))
