from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from ..calendars.model import MonthlyCalendar
from ..common.datetime_utils import get_zone, now_local, to_reference_date
from ..common.validators import optional_text, require_date, require_datetime, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE, MAX_HISTORY_LIMIT, RECENT_DAYS
from ..core.exceptions import DuplicateDayError, NotFoundError, StorageError, ValidationError
from ..statistics.aggregator import StatisticsAggregator
from ..statistics.model import AttendanceStatistics
from .model import (
    AttendanceEvent,
    AttendanceSummary,
    AudioRef,
    CheckInResult,
    HistoryPage,
    NewAttendanceEvent,
    PhotoRef,
)
from .repository import AttendanceRepository, EmployeeScope

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: record check-ins and keep calendars and statistics in step.

    Every check-in runs inside the employee's scope, so the event, the calendar
    bit and the statistics update commit together or not at all.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        aggregator: StatisticsAggregator | None = None,
        tz: tzinfo | None = None,
    ):
        self._attendance = attendance
        self._aggregator = aggregator or StatisticsAggregator()
        self._tz = tz or get_zone(DEFAULT_TIMEZONE)

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value.astimezone(self._tz)

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return now_local(self._tz)
        return self._localize(require_datetime(now, "now"))

    @staticmethod
    def _validate_photos(photos: Iterable[PhotoRef]) -> tuple[PhotoRef, ...]:
        out = []
        for p in photos or ():
            if not isinstance(p, PhotoRef):
                raise ValidationError("photos must contain PhotoRef items")
            out.append(PhotoRef(url=require_non_empty(p.url, "photo url"), photo_type=require_non_empty(p.photo_type, "photo_type")))
        return tuple(out)

    @staticmethod
    def _validate_audio(audio: Optional[AudioRef]) -> Optional[AudioRef]:
        if audio is None:
            return None
        if not isinstance(audio, AudioRef):
            raise ValidationError("audio must be an AudioRef")
        duration = audio.duration_seconds
        if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int) or duration < 0):
            raise ValidationError("audio duration_seconds must be a non-negative integer")
        return AudioRef(url=require_non_empty(audio.url, "audio url"), duration_seconds=duration)

    def record_check_in(
        self,
        employee_id: str,
        *,
        work_date: date | None = None,
        check_in_time: datetime | None = None,
        location: str | None = None,
        photos: Iterable[PhotoRef] = (),
        audio: AudioRef | None = None,
        now: datetime | None = None,
    ) -> CheckInResult:
        employee_id = require_non_empty(employee_id, "employee_id")
        now = self._now(now)
        check_in_time = self._localize(require_datetime(check_in_time, "check_in_time")) if check_in_time is not None else now
        if work_date is None:
            work_date = to_reference_date(check_in_time, self._tz)
        else:
            work_date = require_date(work_date, "work_date")

        new_event = NewAttendanceEvent(
            employee_id=employee_id,
            work_date=work_date,
            check_in_time=check_in_time,
            location=optional_text(location),
            photos=self._validate_photos(photos),
            audio=self._validate_audio(audio),
        )

        existing = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if existing:
            logger.info("Duplicate check-in rejected: employee=%s date=%s", employee_id, work_date)
            raise DuplicateDayError(f"Attendance already marked for {work_date.isoformat()}", existing=existing)

        try:
            with self._attendance.employee_scope(employee_id) as scope:
                result = self._commit(scope, new_event, now=now)
        except DuplicateDayError as exc:
            # Lost the race to a concurrent writer for the same day.
            logger.info("Concurrent duplicate check-in rejected: employee=%s date=%s", employee_id, work_date)
            winner = self._attendance.get_for_employee_and_date(employee_id, work_date)
            raise DuplicateDayError(str(exc), existing=winner) from exc
        except StorageError:
            logger.error("Check-in failed: employee=%s date=%s", employee_id, work_date)
            raise

        logger.info(
            "Check-in recorded: employee=%s date=%s total_days=%d streak=%d",
            employee_id,
            work_date,
            result.statistics.total_days,
            result.statistics.current_streak,
        )
        return result

    def _commit(self, scope: EmployeeScope, new_event: NewAttendanceEvent, *, now: datetime) -> CheckInResult:
        employee_id = scope.employee_id
        stats = scope.load_statistics() or AttendanceStatistics.empty(employee_id)

        event = scope.insert_event(new_event)
        day = event.work_date

        calendar = scope.load_calendar(day.year, day.month) or MonthlyCalendar.empty(employee_id, day.year, day.month)
        calendar = calendar.mark(day.day)
        scope.save_calendar(calendar)

        if stats.last_attendance is None or day > stats.last_attendance:
            stats = self._aggregator.apply(stats, day, now=now)
        else:
            logger.warning(
                "Out-of-order check-in: employee=%s date=%s last=%s, rebuilding statistics",
                employee_id,
                day,
                stats.last_attendance,
            )
            stats = self._aggregator.rebuild(employee_id, [e.work_date for e in scope.list_events()], now=now)
        scope.save_statistics(stats)

        return CheckInResult(event=event, calendar=calendar, statistics=stats)

    def record_check_out(
        self,
        employee_id: str,
        *,
        work_date: date | None = None,
        check_out_time: datetime | None = None,
        now: datetime | None = None,
    ) -> AttendanceEvent:
        employee_id = require_non_empty(employee_id, "employee_id")
        now = self._now(now)
        check_out_time = self._localize(require_datetime(check_out_time, "check_out_time")) if check_out_time is not None else now
        if work_date is None:
            work_date = to_reference_date(check_out_time, self._tz)
        else:
            work_date = require_date(work_date, "work_date")

        record = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if not record:
            raise NotFoundError(f"No check-in for employee {employee_id} on {work_date.isoformat()}")
        if record.check_out_time is not None:
            raise ValidationError("Already checked out for this day")
        if check_out_time < record.check_in_time:
            raise ValidationError("check_out_time is earlier than check_in_time")

        if not self._attendance.update_checkout(attendance_id=record.attendance_id, check_out_time=check_out_time):
            raise ValidationError("Already checked out for this day")

        logger.info("Check-out recorded: employee=%s date=%s", employee_id, work_date)
        return replace(record, check_out_time=check_out_time)

    def get_history(
        self,
        employee_id: str,
        *,
        start: date | None = None,
        end: date | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> HistoryPage:
        employee_id = require_non_empty(employee_id, "employee_id")
        if start is not None:
            start = require_date(start, "start")
        if end is not None:
            end = require_date(end, "end")
        if start and end and start > end:
            raise ValidationError("start must not be after end")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_HISTORY_LIMIT}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValidationError("offset must be >= 0")

        items = self._attendance.list_for_employee(employee_id, start=start, end=end, limit=limit, offset=offset)
        total = self._attendance.count_for_employee(employee_id, start=start, end=end)
        return HistoryPage(items=list(items), total=total, limit=limit, offset=offset)

    def get_summary(self, employee_id: str, *, today: date | None = None) -> AttendanceSummary:
        employee_id = require_non_empty(employee_id, "employee_id")
        today = require_date(today, "today") if today is not None else now_local(self._tz).date()

        total = self._attendance.count_for_employee(employee_id)
        if not total:
            raise NotFoundError(f"No attendance recorded for employee {employee_id}")

        month_start = today.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)
        this_month = self._attendance.count_for_employee(
            employee_id, start=month_start, end=next_month - timedelta(days=1)
        )
        recent = self._attendance.list_for_employee(
            employee_id,
            start=today - timedelta(days=RECENT_DAYS),
            end=today,
            limit=RECENT_DAYS + 1,
        )

        return AttendanceSummary(
            employee_id=employee_id,
            year=today.year,
            month=today.month,
            this_month_days=this_month,
            total_days=total,
            recent=list(recent),
        )
