from __future__ import annotations

import threading
from datetime import date

from attendance_tracker.core.exceptions import DuplicateDayError


def _race(attendance_service, fixed_now, jobs):
    barrier = threading.Barrier(len(jobs))
    results, errors = [], []
    lock = threading.Lock()

    def run(employee_id, work_date):
        barrier.wait()
        try:
            res = attendance_service.record_check_in(employee_id, work_date=work_date, now=fixed_now)
        except DuplicateDayError as exc:
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(res)

    threads = [threading.Thread(target=run, args=job) for job in jobs]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results, errors


def test_same_employee_same_day_commits_exactly_once(attendance_service, store, fixed_now):
    results, errors = _race(attendance_service, fixed_now, [("E1", date(2024, 2, 10))] * 8)

    assert len(results) == 1
    assert len(errors) == 7
    winner = results[0].event
    assert all(e.existing is not None and e.existing.attendance_id == winner.attendance_id for e in errors)

    assert len(store.events) == 1
    assert store.stats["E1"].total_days == 1
    assert store.calendars[("E1", 2024, 2)].total_days == 1


def test_same_employee_different_days_are_all_counted(attendance_service, store, fixed_now):
    days = [date(2024, 2, d) for d in range(1, 11)]
    results, errors = _race(attendance_service, fixed_now, [("E1", d) for d in days])

    assert not errors
    assert len(results) == 10
    stats = store.stats["E1"]
    assert stats.total_days == 10
    assert stats.longest_streak == 10
    assert stats.current_streak == 10
    assert store.calendars[("E1", 2024, 2)].present_days == frozenset(range(1, 11))


def test_different_employees_do_not_interfere(attendance_service, store, fixed_now):
    jobs = [(f"E{n}", date(2024, 2, 10)) for n in range(1, 7)]
    results, errors = _race(attendance_service, fixed_now, jobs)

    assert not errors
    assert sorted(store.stats) == [f"E{n}" for n in range(1, 7)]
    assert all(s.total_days == 1 for s in store.stats.values())
