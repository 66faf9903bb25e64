from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name!r}")


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    """Current time in the reference timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz)


def to_reference_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar day of `instant` in the reference timezone.

    Naive datetimes are taken as already expressed in that timezone.
    """
    if instant.tzinfo is None:
        return instant.date()
    return instant.astimezone(tz).date()


def start_of_week(day: date) -> date:
    """Most recent Sunday on or before `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def same_week(a: date, b: date) -> bool:
    return start_of_week(a) == start_of_week(b)
