from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..calendars.model import MonthlyCalendar
from ..core.constants import DEFAULT_PHOTO_TYPE
from ..statistics.model import AttendanceStatistics


@dataclass(frozen=True)
class PhotoRef:
    """Reference to an already uploaded photo."""

    url: str
    photo_type: str = DEFAULT_PHOTO_TYPE


@dataclass(frozen=True)
class AudioRef:
    """Reference to an already uploaded voice note."""

    url: str
    duration_seconds: Optional[int] = None


@dataclass(frozen=True)
class NewAttendanceEvent:
    """Validated check-in waiting to be stored."""

    employee_id: str
    work_date: date
    check_in_time: datetime
    location: Optional[str] = None
    photos: tuple[PhotoRef, ...] = ()
    audio: Optional[AudioRef] = None


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one employee's attendance for one calendar day.

    This is the source of truth; calendars and statistics are derived from it.
    """

    attendance_id: int
    employee_id: str
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    location: Optional[str] = None
    photos: tuple[PhotoRef, ...] = ()
    audio: Optional[AudioRef] = None


@dataclass(frozen=True)
class CheckInResult:
    event: AttendanceEvent
    calendar: MonthlyCalendar
    statistics: AttendanceStatistics


@dataclass(frozen=True)
class HistoryPage:
    items: list[AttendanceEvent]
    total: int
    limit: int
    offset: int


@dataclass(frozen=True)
class AttendanceSummary:
    """Profile card: this month's days, all-time days and the last week of check-ins."""

    employee_id: str
    year: int
    month: int
    this_month_days: int
    total_days: int
    recent: list[AttendanceEvent]
