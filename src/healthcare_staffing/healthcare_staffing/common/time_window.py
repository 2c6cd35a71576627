"""Clock-time arithmetic on "HH:MM" strings.

Shift windows are half-open ``[start, end)`` intervals expressed as minutes
since midnight. A window whose end is earlier than its start wraps past
midnight and is extended by one day (1440 minutes).
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional, Tuple

from ..core.constants import MINUTES_PER_DAY, NOON_MINUTES
from ..core.exceptions import FormatError

_CLOCK_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def to_minutes(clock: str) -> int:
    if not isinstance(clock, str):
        raise FormatError(f"Invalid time value: {clock!r} (expected HH:MM)")
    m = _CLOCK_RE.match(clock.strip())
    if not m:
        raise FormatError(f"Invalid time value: {clock!r} (expected HH:MM)")
    return int(m.group(1)) * 60 + int(m.group(2))


def normalize_clock(clock: str) -> str:
    """Return the zero-padded form, e.g. ``"7:05"`` -> ``"07:05"``."""
    minutes = to_minutes(clock)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_valid_clock(clock: Optional[str]) -> bool:
    return isinstance(clock, str) and bool(_CLOCK_RE.match(clock.strip()))


def span(start: str, end: str) -> Tuple[int, int]:
    """Minute offsets of a window, with ``end`` pushed past midnight when needed."""
    s = to_minutes(start)
    e = to_minutes(end)
    if e < s:
        e += MINUTES_PER_DAY
    return s, e


def duration_minutes(start: str, end: str) -> int:
    s, e = span(start, end)
    return e - s


def hours_between(start: str, end: str) -> float:
    return round(duration_minutes(start, end) / 60, 2)


def is_late(check_in: str, scheduled_start: str) -> Tuple[bool, int]:
    lateness = to_minutes(check_in) - to_minutes(scheduled_start)
    return lateness > 0, max(0, lateness)


def is_early(check_out: str, scheduled_end: str) -> Tuple[bool, int]:
    # Times before noon belong to the next day, so a 06:00 end of a night
    # shift compares correctly with a 23:30 checkout.
    end = to_minutes(scheduled_end)
    out = to_minutes(check_out)
    if end < NOON_MINUTES:
        end += MINUTES_PER_DAY
    if out < NOON_MINUTES:
        out += MINUTES_PER_DAY
    early = end - out
    return early > 0, max(0, early)


def intervals_overlap(existing: Tuple[int, int], candidate: Tuple[int, int]) -> bool:
    """Three-way overlap test between two minute intervals."""
    es, ee = existing
    cs, ce = candidate
    return (
        (es <= cs < ee)
        or (es < ce <= ee)
        or (cs <= es and ee <= ce)
    )


def windows_overlap(existing_start: str, existing_end: str, start: str, end: str) -> bool:
    """Overlap between two recurring daily windows.

    The candidate is also tried one day earlier and later, so an early
    morning window meets the tail of an overnight one.
    """
    existing = span(existing_start, existing_end)
    cs, ce = span(start, end)
    for offset in (0, MINUTES_PER_DAY, -MINUTES_PER_DAY):
        if intervals_overlap(existing, (cs + offset, ce + offset)):
            return True
    return False


def absolute_span(day: date, start: str, end: str) -> Tuple[int, int]:
    """Window anchored to a calendar day, in minutes since ``date.min``."""
    s, e = span(start, end)
    base = day.toordinal() * MINUTES_PER_DAY
    return base + s, base + e
