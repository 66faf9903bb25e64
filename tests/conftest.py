from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

import pytest

from attendance_tracker.attendance.model import AttendanceEvent, NewAttendanceEvent
from attendance_tracker.attendance.service import AttendanceService
from attendance_tracker.calendars.model import MonthlyCalendar
from attendance_tracker.calendars.service import CalendarService
from attendance_tracker.core.exceptions import DuplicateDayError, StorageError
from attendance_tracker.statistics.model import AttendanceStatistics
from attendance_tracker.statistics.service import StatisticsService

KOLKATA = ZoneInfo("Asia/Kolkata")


class _MemoryScope:
    """Stages writes; the store applies them only when the scope exits cleanly."""

    def __init__(self, store: "InMemoryAttendanceStore", employee_id: str):
        self.employee_id = employee_id
        self._store = store
        self.events: dict[date, AttendanceEvent] = {}
        self.calendars: dict[tuple[int, int], MonthlyCalendar] = {}
        self.stats: Optional[AttendanceStatistics] = None

    def _maybe_fail(self, op: str) -> None:
        if self._store.fail_on == op:
            raise StorageError(f"simulated failure in {op}")

    def load_statistics(self) -> Optional[AttendanceStatistics]:
        self._maybe_fail("load_statistics")
        return self.stats or self._store.stats.get(self.employee_id)

    def load_calendar(self, year: int, month: int) -> Optional[MonthlyCalendar]:
        return self.calendars.get((year, month)) or self._store.calendars.get((self.employee_id, year, month))

    def list_events(self):
        with self._store.guard:
            committed = [e for (emp, _), e in self._store.events.items() if emp == self.employee_id]
        return sorted([*committed, *self.events.values()], key=lambda e: e.work_date)

    def insert_event(self, event: NewAttendanceEvent) -> AttendanceEvent:
        self._maybe_fail("insert_event")
        key = (event.employee_id, event.work_date)
        with self._store.guard:
            if key in self._store.events or event.work_date in self.events:
                raise DuplicateDayError(f"Attendance already marked for {event.work_date.isoformat()}")
            attendance_id = next(self._store.ids)
        stored = AttendanceEvent(
            attendance_id=attendance_id,
            employee_id=event.employee_id,
            work_date=event.work_date,
            check_in_time=event.check_in_time,
            location=event.location,
            photos=event.photos,
            audio=event.audio,
        )
        self.events[event.work_date] = stored
        return stored

    def save_calendar(self, calendar: MonthlyCalendar) -> None:
        self._maybe_fail("save_calendar")
        self.calendars[(calendar.year, calendar.month)] = calendar

    def save_statistics(self, stats: AttendanceStatistics) -> None:
        self._maybe_fail("save_statistics")
        self.stats = stats


class InMemoryAttendanceStore:
    """Implements the attendance, calendar and statistics repositories at once."""

    def __init__(self):
        self.events: dict[tuple[str, date], AttendanceEvent] = {}
        self.calendars: dict[tuple[str, int, int], MonthlyCalendar] = {}
        self.stats: dict[str, AttendanceStatistics] = {}
        self.fail_on: Optional[str] = None
        self.ids = itertools.count(1)
        self.guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def snapshot(self):
        return dict(self.events), dict(self.calendars), dict(self.stats)

    # attendance
    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceEvent]:
        return self.events.get((employee_id, work_date))

    def _filtered(self, employee_id, start, end):
        return [
            e
            for (emp, d), e in self.events.items()
            if emp == employee_id and (start is None or d >= start) and (end is None or d <= end)
        ]

    def list_for_employee(self, employee_id, *, start=None, end=None, limit, offset=0):
        rows = sorted(self._filtered(employee_id, start, end), key=lambda e: e.work_date, reverse=True)
        return rows[offset : offset + limit]

    def count_for_employee(self, employee_id, *, start=None, end=None) -> int:
        return len(self._filtered(employee_id, start, end))

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with self.guard:
            for key, e in self.events.items():
                if e.attendance_id == attendance_id:
                    if e.check_out_time is not None:
                        return False
                    self.events[key] = replace(e, check_out_time=check_out_time)
                    return True
        return False

    def list_employee_ids(self):
        return sorted({emp for emp, _ in self.events})

    @contextmanager
    def employee_scope(self, employee_id: str) -> Iterator[_MemoryScope]:
        with self.guard:
            lock = self._locks.setdefault(employee_id, threading.Lock())
        with lock:
            scope = _MemoryScope(self, employee_id)
            yield scope
            with self.guard:
                for d, e in scope.events.items():
                    self.events[(employee_id, d)] = e
                for (y, m), c in scope.calendars.items():
                    self.calendars[(employee_id, y, m)] = c
                if scope.stats is not None:
                    self.stats[employee_id] = scope.stats

    @property
    def calendar_reads(self) -> "_CalendarReads":
        return _CalendarReads(self)

    @property
    def statistics_reads(self) -> "_StatisticsReads":
        return _StatisticsReads(self)


class _CalendarReads:
    def __init__(self, store: InMemoryAttendanceStore):
        self._store = store

    def get(self, employee_id: str, year: int, month: int) -> Optional[MonthlyCalendar]:
        return self._store.calendars.get((employee_id, year, month))

    def list_for_year(self, employee_id: str, year: int):
        return sorted(
            (c for (emp, y, _), c in self._store.calendars.items() if emp == employee_id and y == year),
            key=lambda c: c.month,
        )

    def list_for_month(self, year: int, month: int):
        return [c for (_, y, m), c in self._store.calendars.items() if y == year and m == month]


class _StatisticsReads:
    def __init__(self, store: InMemoryAttendanceStore):
        self._store = store

    def get(self, employee_id: str) -> Optional[AttendanceStatistics]:
        return self._store.stats.get(employee_id)


@pytest.fixture
def tz():
    return KOLKATA


@pytest.fixture
def fixed_now(tz):
    return datetime(2024, 1, 5, 18, 0, tzinfo=tz)


@pytest.fixture
def store():
    return InMemoryAttendanceStore()


@pytest.fixture
def attendance_service(store, tz):
    return AttendanceService(store, tz=tz)


@pytest.fixture
def statistics_service(store, tz):
    return StatisticsService(store.statistics_reads, store, tz=tz)


@pytest.fixture
def calendar_service(store):
    return CalendarService(store.calendar_reads, store.statistics_reads)


@pytest.fixture
def check_in(attendance_service, fixed_now):
    """Check E1 (or another employee) in at 09:00 local on each given day."""

    def _check_in(*days: date, employee_id: str = "E1", now: datetime | None = None):
        results = []
        for d in days:
            results.append(
                attendance_service.record_check_in(
                    employee_id,
                    check_in_time=datetime(d.year, d.month, d.day, 9, 0),
                    now=now or fixed_now,
                )
            )
        return results

    return _check_in
