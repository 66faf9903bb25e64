from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import MonthlyCalendar


class CalendarRepository(Protocol):
    """Read side of the monthly calendars.

    Writes go through the per-employee scope of the attendance repository so
    they share the check-in transaction.
    """

    def get(self, employee_id: str, year: int, month: int) -> Optional[MonthlyCalendar]:
        raise NotImplementedError

    def list_for_year(self, employee_id: str, year: int) -> Sequence[MonthlyCalendar]:
        raise NotImplementedError

    def list_for_month(self, year: int, month: int) -> Sequence[MonthlyCalendar]:
        raise NotImplementedError
