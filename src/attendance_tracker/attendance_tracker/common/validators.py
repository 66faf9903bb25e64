from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_date(value: object, field_name: str) -> date:
    # datetime is a subclass of date; a timestamp is not a calendar day.
    if not isinstance(value, date) or isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a calendar date")
    return value


def require_datetime(value: object, field_name: str) -> datetime:
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime")
    return value


def require_month(value: int, field_name: str = "month") -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 12:
        raise ValidationError(f"{field_name} must be between 1 and 12")
    return value


def require_year(value: int, field_name: str = "year") -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 9999:
        raise ValidationError(f"{field_name} is not a valid year")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
