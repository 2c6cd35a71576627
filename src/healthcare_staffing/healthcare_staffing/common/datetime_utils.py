from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, date, datetime
from typing import Optional, Tuple

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_iso_date(value)


def now_local() -> datetime:
    """Current local time.

    Services take a ``clock`` callable defaulting to this one.
    """
    return datetime.now()


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def require_year(year: int) -> int:
    if not MINYEAR <= year <= MAXYEAR:
        raise ValidationError(f"year must be between {MINYEAR} and {MAXYEAR}")
    return year


def year_bounds(year: int) -> Tuple[date, date]:
    year = require_year(year)
    return date(year, 1, 1), date(year, 12, 31)


def month_bounds(day: date) -> Tuple[date, date]:
    start = day.replace(day=1)
    if day.month == 12:
        next_month = date(day.year + 1, 1, 1)
    else:
        next_month = date(day.year, day.month + 1, 1)
    return start, date.fromordinal(next_month.toordinal() - 1)
