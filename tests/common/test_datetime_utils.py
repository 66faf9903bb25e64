from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from attendance_tracker.common.datetime_utils import (
    get_zone,
    same_week,
    start_of_week,
    to_reference_date,
)
from attendance_tracker.common.validators import require_date, require_month, require_non_empty
from attendance_tracker.core.exceptions import ValidationError

KOLKATA = ZoneInfo("Asia/Kolkata")


def test_week_starts_on_sunday():
    # 2024-01-01 is a Monday.
    assert start_of_week(date(2024, 1, 1)) == date(2023, 12, 31)
    assert start_of_week(date(2024, 1, 6)) == date(2023, 12, 31)
    assert start_of_week(date(2024, 1, 7)) == date(2024, 1, 7)


def test_saturday_and_next_sunday_are_different_weeks():
    assert same_week(date(2024, 1, 1), date(2024, 1, 6))
    assert not same_week(date(2024, 1, 6), date(2024, 1, 7))


def test_reference_date_converts_aware_instants():
    late_utc = datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)
    assert to_reference_date(late_utc, KOLKATA) == date(2024, 1, 2)


def test_reference_date_keeps_naive_wall_time():
    assert to_reference_date(datetime(2024, 1, 1, 23, 59), KOLKATA) == date(2024, 1, 1)


def test_unknown_zone_is_a_validation_error():
    with pytest.raises(ValidationError):
        get_zone("Mars/Olympus_Mons")


def test_validators():
    assert require_non_empty("  E1 ", "employee_id") == "E1"
    with pytest.raises(ValidationError):
        require_non_empty("   ", "employee_id")
    with pytest.raises(ValidationError):
        require_date(datetime(2024, 1, 1), "work_date")
    with pytest.raises(ValidationError):
        require_month(13)
