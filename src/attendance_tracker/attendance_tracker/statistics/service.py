from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo

from ..attendance.repository import AttendanceRepository
from ..calendars.model import calendars_from_dates
from ..common.datetime_utils import get_zone, now_local
from ..common.validators import require_date, require_non_empty
from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import DomainError, NotFoundError
from .aggregator import StatisticsAggregator
from .model import AttendanceStatistics, RecomputeSummary
from .repository import StatisticsRepository

logger = logging.getLogger(__name__)


class StatisticsService:
    def __init__(
        self,
        statistics: StatisticsRepository,
        attendance: AttendanceRepository,
        *,
        aggregator: StatisticsAggregator | None = None,
        tz: tzinfo | None = None,
    ):
        self._statistics = statistics
        self._attendance = attendance
        self._aggregator = aggregator or StatisticsAggregator()
        self._tz = tz or get_zone(DEFAULT_TIMEZONE)

    def get_statistics(self, employee_id: str, *, as_of: date | datetime | None = None) -> AttendanceStatistics:
        """Stored statistics of an employee.

        `this_month_count` and `weekly_average` are as of the last check-in; pass
        `as_of` to re-evaluate them for another day without writing anything.
        """
        employee_id = require_non_empty(employee_id, "employee_id")
        stats = self._statistics.get(employee_id)
        if stats is None:
            raise NotFoundError(f"No attendance recorded for employee {employee_id}")

        if as_of is not None:
            if isinstance(as_of, datetime):
                clock = as_of.replace(tzinfo=self._tz) if as_of.tzinfo is None else as_of.astimezone(self._tz)
            else:
                clock = require_date(as_of, "as_of")
            stats = self._aggregator.refresh(stats, now=clock)
        return stats

    def recompute_statistics(self, employee_id: str, *, now: datetime | None = None) -> AttendanceStatistics:
        """Rebuild statistics and month calendars from the stored events."""
        employee_id = require_non_empty(employee_id, "employee_id")
        now = now or now_local(self._tz)

        with self._attendance.employee_scope(employee_id) as scope:
            dates = [e.work_date for e in scope.list_events()]
            if not dates:
                raise NotFoundError(f"No attendance recorded for employee {employee_id}")

            stats = self._aggregator.rebuild(employee_id, dates, now=now)
            for calendar in calendars_from_dates(employee_id, dates):
                scope.save_calendar(calendar)
            scope.save_statistics(stats)

        logger.info(
            "Statistics recomputed: employee=%s total_days=%d longest_streak=%d",
            employee_id,
            stats.total_days,
            stats.longest_streak,
        )
        return stats

    def recompute_all(self, *, now: datetime | None = None) -> RecomputeSummary:
        """Repair every employee; one failure does not stop the others."""
        now = now or now_local(self._tz)
        recomputed: dict[str, AttendanceStatistics] = {}
        failed: list[str] = []
        for employee_id in self._attendance.list_employee_ids():
            try:
                recomputed[employee_id] = self.recompute_statistics(employee_id, now=now)
            except DomainError as exc:
                logger.error("Recompute failed: employee=%s error=%s", employee_id, exc)
                failed.append(employee_id)
        return RecomputeSummary(recomputed=recomputed, failed=failed)
