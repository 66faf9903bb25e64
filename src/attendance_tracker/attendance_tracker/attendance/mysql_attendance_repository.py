from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

import mysql.connector

from ..calendars.model import MonthlyCalendar
from ..calendars.mysql_calendar_repository import row_to_calendar
from ..core.exceptions import DuplicateDayError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    is_duplicate_key,
    to_db_datetime,
)
from ..statistics.model import AttendanceStatistics
from ..statistics.mysql_statistics_repository import row_to_statistics
from .model import AttendanceEvent, AudioRef, NewAttendanceEvent, PhotoRef
from .repository import AttendanceRepository, EmployeeScope

_EVENT_COLUMNS = "attendance_id, emp_id, work_date, check_in_time, check_out_time, location"


def _load_events(cur, rows: List[Dict[str, Any]]) -> List[AttendanceEvent]:
    """Turn event rows into entities, attaching their photos and audio."""
    if not rows:
        return []

    ids = [int(r["attendance_id"]) for r in rows]
    placeholders = ",".join(["%s"] * len(ids))

    cur.execute(
        f"""
        SELECT attendance_id, photo_url, photo_type
        FROM attendance_photos
        WHERE attendance_id IN ({placeholders})
        ORDER BY photo_id ASC
        """,
        tuple(ids),
    )
    photos: dict[int, list[PhotoRef]] = {}
    for p in fetchall(cur):
        photos.setdefault(int(p["attendance_id"]), []).append(
            PhotoRef(url=p["photo_url"], photo_type=p["photo_type"])
        )

    cur.execute(
        f"""
        SELECT attendance_id, audio_url, duration_seconds
        FROM attendance_audio
        WHERE attendance_id IN ({placeholders})
        """,
        tuple(ids),
    )
    audio: dict[int, AudioRef] = {}
    for a in fetchall(cur):
        duration = a.get("duration_seconds")
        audio[int(a["attendance_id"])] = AudioRef(
            url=a["audio_url"],
            duration_seconds=int(duration) if duration is not None else None,
        )

    return [
        AttendanceEvent(
            attendance_id=int(r["attendance_id"]),
            employee_id=str(r["emp_id"]),
            work_date=r["work_date"],
            check_in_time=from_db_datetime(r["check_in_time"]),
            check_out_time=from_db_datetime(r.get("check_out_time")),
            location=r.get("location"),
            photos=tuple(photos.get(int(r["attendance_id"]), ())),
            audio=audio.get(int(r["attendance_id"])),
        )
        for r in rows
    ]


class _MySQLEmployeeScope(EmployeeScope):
    def __init__(self, employee_id: str, cur):
        self.employee_id = employee_id
        self._cur = cur
        self._stats_row: Optional[Dict[str, Any]] = None

    def lock(self) -> None:
        # The statistics row doubles as the per-employee lock; create it first so
        # there is always a row to lock, even on the very first check-in.
        self._cur.execute(
            """
            INSERT INTO attendance_statistics (emp_id, monthly_count)
            VALUES (%s, %s)
            ON DUPLICATE KEY UPDATE emp_id = emp_id
            """,
            (self.employee_id, "{}"),
        )
        self._cur.execute(
            """
            SELECT emp_id, total_days, current_streak, longest_streak,
                   first_attendance, last_attendance, monthly_count,
                   this_month_count, this_week_count, weekly_average
            FROM attendance_statistics
            WHERE emp_id=%s
            FOR UPDATE
            """,
            (self.employee_id,),
        )
        self._stats_row = fetchone(self._cur)

    def load_statistics(self) -> Optional[AttendanceStatistics]:
        # A freshly created lock row carries no attendance yet.
        if not self._stats_row or not int(self._stats_row.get("total_days") or 0):
            return None
        return row_to_statistics(self._stats_row)

    def load_calendar(self, year: int, month: int) -> Optional[MonthlyCalendar]:
        self._cur.execute(
            """
            SELECT emp_id, year, month, days_mask
            FROM attendance_calendars
            WHERE emp_id=%s AND year=%s AND month=%s
            """,
            (self.employee_id, int(year), int(month)),
        )
        r = fetchone(self._cur)
        return row_to_calendar(r) if r else None

    def list_events(self) -> Sequence[AttendanceEvent]:
        self._cur.execute(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM attendance_events
            WHERE emp_id=%s
            ORDER BY work_date ASC
            """,
            (self.employee_id,),
        )
        return _load_events(self._cur, fetchall(self._cur))

    def insert_event(self, event: NewAttendanceEvent) -> AttendanceEvent:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance_events(emp_id, work_date, check_in_time, location)
                VALUES(%s,%s,%s,%s)
                """,
                (event.employee_id, event.work_date, to_db_datetime(event.check_in_time), event.location),
            )
        except mysql.connector.Error as exc:
            if is_duplicate_key(exc):
                raise DuplicateDayError(
                    f"Attendance already marked for {event.work_date.isoformat()}"
                ) from exc
            raise

        attendance_id = int(self._cur.lastrowid)

        if event.photos:
            self._cur.executemany(
                """
                INSERT INTO attendance_photos(attendance_id, photo_url, photo_type)
                VALUES(%s,%s,%s)
                """,
                [(attendance_id, p.url, p.photo_type) for p in event.photos],
            )
        if event.audio is not None:
            self._cur.execute(
                """
                INSERT INTO attendance_audio(attendance_id, audio_url, duration_seconds)
                VALUES(%s,%s,%s)
                """,
                (attendance_id, event.audio.url, event.audio.duration_seconds),
            )

        return AttendanceEvent(
            attendance_id=attendance_id,
            employee_id=event.employee_id,
            work_date=event.work_date,
            check_in_time=event.check_in_time,
            location=event.location,
            photos=event.photos,
            audio=event.audio,
        )

    def save_calendar(self, calendar: MonthlyCalendar) -> None:
        self._cur.execute(
            """
            INSERT INTO attendance_calendars(emp_id, year, month, days_mask, total_days)
            VALUES(%s,%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE days_mask=VALUES(days_mask), total_days=VALUES(total_days)
            """,
            (self.employee_id, calendar.year, calendar.month, calendar.mask.bits, calendar.total_days),
        )

    def save_statistics(self, stats: AttendanceStatistics) -> None:
        self._cur.execute(
            """
            UPDATE attendance_statistics
            SET total_days=%s, current_streak=%s, longest_streak=%s,
                first_attendance=%s, last_attendance=%s, monthly_count=%s,
                this_month_count=%s, this_week_count=%s, weekly_average=%s
            WHERE emp_id=%s
            """,
            (
                stats.total_days,
                stats.current_streak,
                stats.longest_streak,
                stats.first_attendance,
                stats.last_attendance,
                json.dumps(stats.monthly_count_json()),
                stats.this_month_count,
                stats.this_week_count,
                stats.weekly_average,
                self.employee_id,
            ),
        )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events
                WHERE emp_id=%s AND work_date=%s
                """,
                (employee_id, work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _load_events(cur, [r])[0]

    @staticmethod
    def _where(employee_id: str, start: Optional[date], end: Optional[date]) -> tuple[str, list[object]]:
        clauses = ["emp_id=%s"]
        params: list[object] = [employee_id]
        if start is not None:
            clauses.append("work_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("work_date <= %s")
            params.append(end)
        return " AND ".join(clauses), params

    def list_for_employee(
        self,
        employee_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[AttendanceEvent]:
        where, params = self._where(employee_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events
                WHERE {where}
                ORDER BY work_date DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return _load_events(cur, fetchall(cur))

    def count_for_employee(
        self,
        employee_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> int:
        where, params = self._where(employee_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_events WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_events
                SET check_out_time=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (to_db_datetime(check_out_time), int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_employee_ids(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT emp_id FROM attendance_events ORDER BY emp_id ASC")
            return [str(r["emp_id"]) for r in fetchall(cur)]

    @contextmanager
    def employee_scope(self, employee_id: str) -> Iterator[EmployeeScope]:
        with db_cursor(self._conn_factory) as (_, cur):
            scope = _MySQLEmployeeScope(employee_id, cur)
            scope.lock()
            yield scope
