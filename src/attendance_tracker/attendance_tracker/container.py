from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .calendars.mysql_calendar_repository import MySQLCalendarRepository
from .calendars.service import CalendarService
from .common.datetime_utils import get_zone
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .statistics.aggregator import StatisticsAggregator
from .statistics.mysql_statistics_repository import MySQLStatisticsRepository
from .statistics.service import StatisticsService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    attendance_repo: MySQLAttendanceRepository
    calendars_repo: MySQLCalendarRepository
    statistics_repo: MySQLStatisticsRepository

    attendance_service: AttendanceService
    calendar_service: CalendarService
    statistics_service: StatisticsService


def build_container(
    *,
    db_config: dict,
    lock_wait_timeout: Optional[int] = None,
    timezone: Optional[str] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config, lock_wait_timeout=lock_wait_timeout))
    tz = get_zone(timezone or DEFAULT_TIMEZONE)
    aggregator = StatisticsAggregator()

    attendance_repo = MySQLAttendanceRepository(conn)
    calendars_repo = MySQLCalendarRepository(conn)
    statistics_repo = MySQLStatisticsRepository(conn)

    attendance_service = AttendanceService(attendance_repo, aggregator=aggregator, tz=tz)
    calendar_service = CalendarService(calendars_repo, statistics_repo)
    statistics_service = StatisticsService(statistics_repo, attendance_repo, aggregator=aggregator, tz=tz)

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        calendars_repo=calendars_repo,
        statistics_repo=statistics_repo,
        attendance_service=attendance_service,
        calendar_service=calendar_service,
        statistics_service=statistics_service,
    )
