from __future__ import annotations

from typing import Any, Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, load_json_column
from .model import AttendanceStatistics
from .repository import StatisticsRepository


def row_to_statistics(r: Dict[str, Any]) -> AttendanceStatistics:
    return AttendanceStatistics(
        employee_id=str(r["emp_id"]),
        total_days=int(r.get("total_days") or 0),
        current_streak=int(r.get("current_streak") or 0),
        longest_streak=int(r.get("longest_streak") or 0),
        first_attendance=r.get("first_attendance"),
        last_attendance=r.get("last_attendance"),
        monthly_count=AttendanceStatistics.monthly_count_from_json(load_json_column(r.get("monthly_count"))),
        this_month_count=int(r.get("this_month_count") or 0),
        this_week_count=int(r.get("this_week_count") or 0),
        weekly_average=float(r.get("weekly_average") or 0),
    )


class MySQLStatisticsRepository(StatisticsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: str) -> Optional[AttendanceStatistics]:
        with db_cursor(self._conn_factory) as (_, cur):
            # total_days > 0 skips lock rows left by a writer still in flight.
            cur.execute(
                """
                SELECT emp_id, total_days, current_streak, longest_streak,
                       first_attendance, last_attendance, monthly_count,
                       this_month_count, this_week_count, weekly_average
                FROM attendance_statistics
                WHERE emp_id=%s AND total_days > 0
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            return row_to_statistics(r) if r else None
