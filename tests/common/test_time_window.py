import pytest

from src.healthcare_staffing.healthcare_staffing.common import time_window
from src.healthcare_staffing.healthcare_staffing.core.exceptions import FormatError


def test_to_minutes_accepts_single_digit_hour():
    assert time_window.to_minutes("7:05") == 425
    assert time_window.normalize_clock("7:05") == "07:05"


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", None, "1230"])
def test_to_minutes_rejects_malformed_clock(value):
    with pytest.raises(FormatError):
        time_window.to_minutes(value)


def test_overnight_window_wraps_past_midnight():
    assert time_window.span("22:00", "06:00") == (1320, 1800)
    assert time_window.hours_between("22:00", "06:00") == 8.0


def test_adjacent_windows_do_not_overlap():
    assert not time_window.windows_overlap("08:00", "16:00", "16:00", "23:00")


def test_early_morning_window_meets_tail_of_night_window():
    assert time_window.windows_overlap("22:00", "06:00", "05:00", "09:00")


def test_candidate_enclosing_existing_window_overlaps():
    assert time_window.windows_overlap("10:00", "11:00", "08:00", "16:00")


def test_night_shift_duration():
    assert time_window.duration_minutes("22:00", "06:00") == 480
    assert time_window.duration_minutes("08:00", "08:00") == 0


def test_late_and_early_minutes():
    assert time_window.is_late("08:15", "08:00") == (True, 15)
    assert time_window.is_late("07:50", "08:00") == (False, 0)
    # Night shift ending 06:00, checkout before midnight.
    assert time_window.is_early("23:30", "06:00") == (True, 390)
    assert time_window.is_early("06:10", "06:00") == (False, 0)
