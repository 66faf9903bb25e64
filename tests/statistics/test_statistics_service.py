from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from attendance_tracker.core.exceptions import NotFoundError, StorageError


def test_get_statistics_of_unknown_employee(statistics_service):
    with pytest.raises(NotFoundError):
        statistics_service.get_statistics("nobody")


def test_get_statistics_returns_stored_snapshot(statistics_service, check_in):
    check_in(date(2024, 1, 1), date(2024, 1, 2))
    stats = statistics_service.get_statistics("E1")
    assert stats.total_days == 2
    assert stats.current_streak == 2


def test_as_of_reevaluates_clock_fields_without_writing(statistics_service, check_in, store):
    check_in(date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5))

    stats = statistics_service.get_statistics("E1", as_of=date(2024, 2, 1))
    assert stats.this_month_count == 0
    assert stats.weekly_average == 0.8
    assert store.stats["E1"].this_month_count == 4

    stats = statistics_service.get_statistics("E1", as_of=datetime(2024, 1, 31, 12, 0))
    assert stats.this_month_count == 4


def test_recompute_repairs_drifted_statistics_and_calendars(statistics_service, check_in, store, fixed_now):
    check_in(date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5))
    expected_stats = store.stats["E1"]
    expected_calendar = store.calendars[("E1", 2024, 1)]

    store.stats["E1"] = replace(expected_stats, total_days=99, current_streak=0, monthly_count={})
    del store.calendars[("E1", 2024, 1)]

    repaired = statistics_service.recompute_statistics("E1", now=fixed_now)

    assert repaired == expected_stats
    assert store.stats["E1"] == expected_stats
    assert store.calendars[("E1", 2024, 1)] == expected_calendar


def test_recompute_without_events_is_not_found(statistics_service, store):
    with pytest.raises(NotFoundError):
        statistics_service.recompute_statistics("E9")
    assert "E9" not in store.stats


def test_recompute_all_covers_every_employee(statistics_service, check_in, fixed_now):
    check_in(date(2024, 1, 1), date(2024, 1, 2))
    check_in(date(2024, 1, 4), employee_id="E2")

    summary = statistics_service.recompute_all(now=fixed_now)

    assert summary.failed == []
    assert sorted(summary.recomputed) == ["E1", "E2"]
    assert summary.recomputed["E1"].total_days == 2
    assert summary.recomputed["E2"].longest_streak == 1


def test_recompute_all_continues_past_a_failing_employee(statistics_service, check_in, store, fixed_now, monkeypatch):
    check_in(date(2024, 1, 1), date(2024, 1, 2))
    check_in(date(2024, 1, 4), employee_id="E2")
    original_scope = store.employee_scope

    def flaky_scope(employee_id):
        if employee_id == "E1":
            raise StorageError("lock wait timeout")
        return original_scope(employee_id)

    monkeypatch.setattr(store, "employee_scope", flaky_scope)

    summary = statistics_service.recompute_all(now=fixed_now)

    assert summary.failed == ["E1"]
    assert list(summary.recomputed) == ["E2"]
    assert summary.recomputed["E2"].total_days == 1


def test_failed_recompute_leaves_previous_statistics(statistics_service, check_in, store, fixed_now):
    check_in(date(2024, 1, 1), date(2024, 1, 3))
    drifted = replace(store.stats["E1"], total_days=7)
    store.stats["E1"] = drifted

    store.fail_on = "save_statistics"
    with pytest.raises(StorageError):
        statistics_service.recompute_statistics("E1", now=fixed_now)

    assert store.stats["E1"] == drifted


def test_weekly_average_uses_check_in_instant(statistics_service, check_in, tz):
    for d in (date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 8)):
        check_in(d, now=datetime(d.year, d.month, d.day, 9, 0, tzinfo=tz))

    assert statistics_service.get_statistics("E1").weekly_average == 1.5
    assert statistics_service.get_statistics("E1", as_of=datetime(2024, 1, 8, 0, 0)).weekly_average == 3.0
