from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Union

from ..common.datetime_utils import same_week
from ..streaks.calculator import advance
from .model import AttendanceStatistics

Clock = Union[date, datetime]

_WEEK = timedelta(days=7)


def _as_date(now: Clock) -> date:
    return now.date() if isinstance(now, datetime) else now


def _elapsed_since(first_attendance: date, now: Clock) -> timedelta:
    # A datetime clock counts from midnight of the first day in its own zone.
    if isinstance(now, datetime):
        return now - datetime.combine(first_attendance, time.min, tzinfo=now.tzinfo)
    return now - first_attendance


def weekly_average(total_days: int, first_attendance: Optional[date], now: Clock) -> float:
    """Presence days per started week since the first check-in (at least one week)."""
    if total_days <= 0 or first_attendance is None:
        return 0.0
    elapsed = max(timedelta(0), _elapsed_since(first_attendance, now))
    weeks = max(1, math.ceil(elapsed / _WEEK))
    return round(total_days / weeks, 2)


class StatisticsAggregator:
    """Folds presence days into AttendanceStatistics.

    Everything except `this_month_count` and `weekly_average` depends only on the
    previous statistics and the new day; those two also read the wall clock.
    """

    def apply(self, stats: AttendanceStatistics, event_date: date, *, now: Clock) -> AttendanceStatistics:
        streak = advance(stats.streak_state, event_date)

        monthly = {year: dict(months) for year, months in stats.monthly_count.items()}
        months = monthly.setdefault(event_date.year, {})
        months[event_date.month] = months.get(event_date.month, 0) + 1

        # Days arrive in ascending order, so the new day closes the week window.
        if stats.last_attendance is not None and same_week(stats.last_attendance, event_date):
            this_week = stats.this_week_count + 1
        else:
            this_week = 1

        total_days = stats.total_days + 1
        first_attendance = stats.first_attendance or event_date
        today = _as_date(now)

        return AttendanceStatistics(
            employee_id=stats.employee_id,
            total_days=total_days,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            first_attendance=first_attendance,
            last_attendance=streak.last_attendance,
            monthly_count=monthly,
            this_month_count=monthly.get(today.year, {}).get(today.month, 0),
            this_week_count=this_week,
            weekly_average=weekly_average(total_days, first_attendance, now),
        )

    def rebuild(self, employee_id: str, dates: Iterable[date], *, now: Clock) -> AttendanceStatistics:
        """Replay a full history in chronological order."""
        stats = AttendanceStatistics.empty(employee_id)
        for d in sorted(dates):
            stats = self.apply(stats, d, now=now)
        return stats

    def refresh(self, stats: AttendanceStatistics, *, now: Clock) -> AttendanceStatistics:
        """Re-evaluate the clock-dependent fields without counting a new day."""
        today = _as_date(now)
        return replace(
            stats,
            this_month_count=stats.month_count(today.year, today.month),
            weekly_average=weekly_average(stats.total_days, stats.first_attendance, now),
        )
