from __future__ import annotations

from datetime import date, datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..calendars.model import MonthlyCalendar
from ..statistics.model import AttendanceStatistics
from .model import AttendanceEvent, NewAttendanceEvent


class EmployeeScope(Protocol):
    """Write access to one employee's data inside a single transaction.

    Opening the scope takes the employee's lock, so two writers for the same
    employee run one after the other. Everything written through the scope
    commits together when it exits cleanly and is discarded otherwise.
    """

    employee_id: str

    def load_statistics(self) -> Optional[AttendanceStatistics]:
        raise NotImplementedError

    def load_calendar(self, year: int, month: int) -> Optional[MonthlyCalendar]:
        raise NotImplementedError

    def list_events(self) -> Sequence[AttendanceEvent]:
        """All events of the employee, oldest first, including uncommitted ones."""

        raise NotImplementedError

    def insert_event(self, event: NewAttendanceEvent) -> AttendanceEvent:
        """Store a new event; raises DuplicateDayError when the day is taken."""

        raise NotImplementedError

    def save_calendar(self, calendar: MonthlyCalendar) -> None:
        raise NotImplementedError

    def save_statistics(self, stats: AttendanceStatistics) -> None:
        raise NotImplementedError


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[AttendanceEvent]:
        """Newest first."""

        raise NotImplementedError

    def count_for_employee(
        self,
        employee_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        raise NotImplementedError

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        """Set check-out once; returns False when it was already set."""

        raise NotImplementedError

    def list_employee_ids(self) -> Sequence[str]:
        raise NotImplementedError

    def employee_scope(self, employee_id: str) -> ContextManager[EmployeeScope]:
        raise NotImplementedError
