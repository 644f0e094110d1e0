from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

JST = timezone(timedelta(hours=9), "JST")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        raise ValueError(f"Invalid date (YYYY-MM-DD): {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; values without an offset are taken as JST."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid datetime: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return to_jst(parsed)


def to_jst(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=JST)
    return value.astimezone(JST)


def at_jst(work_date: date, at: time) -> datetime:
    return datetime.combine(work_date, at, tzinfo=JST)


def inclusive_day_count(start: date, end: date) -> int:
    """Calendar days from start to end, both ends included."""
    days = (end - start).total_seconds() / 86400
    return math.ceil(days) + 1


def fiscal_year_of(value: date) -> int:
    """Fiscal years start in April: 2024-03-31 belongs to FY2023."""
    return value.year if value.month >= 4 else value.year - 1


def fiscal_year_range(fiscal_year: int) -> tuple[date, date]:
    return date(fiscal_year, 4, 1), date(fiscal_year + 1, 3, 31)


def is_in_fiscal_year(value: date, fiscal_year: int) -> bool:
    return fiscal_year_of(value) == fiscal_year


def month_range(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def format_iso(value: Optional[datetime]) -> Optional[str]:
    return to_jst(value).isoformat() if value else None
