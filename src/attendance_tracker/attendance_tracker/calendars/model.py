from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable

from .mask import DayMask


@dataclass(frozen=True)
class MonthlyCalendar:
    """Domain entity: presence calendar of one employee for one month.

    Created lazily on the first check-in of the month; bits are only ever added.
    """

    employee_id: str
    year: int
    month: int
    mask: DayMask = field(default_factory=DayMask)

    @classmethod
    def empty(cls, employee_id: str, year: int, month: int) -> "MonthlyCalendar":
        return cls(employee_id=employee_id, year=int(year), month=int(month))

    @property
    def total_days(self) -> int:
        return self.mask.count()

    @property
    def present_days(self) -> frozenset[int]:
        return self.mask.days()

    def mark(self, day: int) -> "MonthlyCalendar":
        return replace(self, mask=self.mask.set_day(day))

    def to_view(self) -> "MonthCalendarView":
        return MonthCalendarView(
            year=self.year,
            month=self.month,
            present_days=self.present_days,
            total_days=self.total_days,
            days_mask=self.mask.to_string(),
        )


def calendars_from_dates(employee_id: str, dates: Iterable[date]) -> list[MonthlyCalendar]:
    """Rebuild every month calendar touched by `dates`, oldest month first."""
    by_month: dict[tuple[int, int], list[int]] = {}
    for d in dates:
        by_month.setdefault((d.year, d.month), []).append(d.day)
    return [
        MonthlyCalendar(employee_id=employee_id, year=year, month=month, mask=DayMask.from_days(days))
        for (year, month), days in sorted(by_month.items())
    ]


@dataclass(frozen=True)
class MonthCalendarView:
    """Read-model for one month (mobile profile calendar)."""

    year: int
    month: int
    present_days: frozenset[int]
    total_days: int
    days_mask: str


@dataclass(frozen=True)
class YearCalendarView:
    year: int
    months: dict[int, MonthCalendarView]
    total_days: int


@dataclass(frozen=True)
class MonthlyPresence:
    """Admin overview row: how many days an employee was present in a month."""

    employee_id: str
    year: int
    month: int
    total_days: int
    days_mask: str
