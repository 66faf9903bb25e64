from __future__ import annotations

from typing import Optional, Union

from ..common.validators import require_month, require_non_empty, require_year
from ..core.exceptions import NotFoundError
from ..statistics.repository import StatisticsRepository
from .model import MonthCalendarView, MonthlyCalendar, MonthlyPresence, YearCalendarView
from .repository import CalendarRepository


class CalendarService:
    """Use case: calendar views for mobile profile and admin screens."""

    def __init__(self, calendars: CalendarRepository, statistics: StatisticsRepository):
        self._calendars = calendars
        self._statistics = statistics

    def get_calendar(
        self,
        employee_id: str,
        year: int,
        month: Optional[int] = None,
    ) -> Union[MonthCalendarView, YearCalendarView]:
        """Presence days of one month, or of every month of `year` when month is None.

        An employee that never checked in is unknown to the engine (NotFoundError);
        a known employee with no check-ins in the period gets an empty view.
        """
        employee_id = require_non_empty(employee_id, "employee_id")
        year = require_year(year)
        if month is not None:
            month = require_month(month)

        if self._statistics.get(employee_id) is None:
            raise NotFoundError(f"No attendance recorded for employee {employee_id}")

        if month is not None:
            calendar = self._calendars.get(employee_id, year, month) or MonthlyCalendar.empty(employee_id, year, month)
            return calendar.to_view()

        months = {c.month: c.to_view() for c in self._calendars.list_for_year(employee_id, year)}
        return YearCalendarView(
            year=year,
            months=dict(sorted(months.items())),
            total_days=sum(v.total_days for v in months.values()),
        )

    def monthly_overview(self, year: int, month: int) -> list[MonthlyPresence]:
        year = require_year(year)
        month = require_month(month)

        rows = [
            MonthlyPresence(
                employee_id=c.employee_id,
                year=c.year,
                month=c.month,
                total_days=c.total_days,
                days_mask=c.mask.to_string(),
            )
            for c in self._calendars.list_for_month(year, month)
        ]
        rows.sort(key=lambda r: r.employee_id)
        return rows
