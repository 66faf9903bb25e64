from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .mask import DayMask
from .model import MonthlyCalendar
from .repository import CalendarRepository


def row_to_calendar(r: Dict[str, Any]) -> MonthlyCalendar:
    return MonthlyCalendar(
        employee_id=str(r["emp_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        mask=DayMask(int(r["days_mask"] or 0)),
    )


class MySQLCalendarRepository(CalendarRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: str, year: int, month: int) -> Optional[MonthlyCalendar]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT emp_id, year, month, days_mask
                FROM attendance_calendars
                WHERE emp_id=%s AND year=%s AND month=%s
                """,
                (employee_id, int(year), int(month)),
            )
            r = fetchone(cur)
            return row_to_calendar(r) if r else None

    def list_for_year(self, employee_id: str, year: int) -> Sequence[MonthlyCalendar]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT emp_id, year, month, days_mask
                FROM attendance_calendars
                WHERE emp_id=%s AND year=%s
                ORDER BY month ASC
                """,
                (employee_id, int(year)),
            )
            return [row_to_calendar(r) for r in fetchall(cur)]

    def list_for_month(self, year: int, month: int) -> Sequence[MonthlyCalendar]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT emp_id, year, month, days_mask
                FROM attendance_calendars
                WHERE year=%s AND month=%s
                ORDER BY emp_id ASC
                """,
                (int(year), int(month)),
            )
            return [row_to_calendar(r) for r in fetchall(cur)]
