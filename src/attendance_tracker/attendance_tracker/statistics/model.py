from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

from ..streaks.calculator import StreakState


@dataclass(frozen=True)
class AttendanceStatistics:
    """Domain entity: running attendance totals of one employee.

    Derived from the attendance events and rebuildable from them. Counters only
    grow; `this_month_count` and `weekly_average` are snapshots taken at the
    time of the last write.
    """

    employee_id: str
    total_days: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    first_attendance: Optional[date] = None
    last_attendance: Optional[date] = None
    monthly_count: Mapping[int, Mapping[int, int]] = field(default_factory=dict)
    this_month_count: int = 0
    this_week_count: int = 0
    weekly_average: float = 0.0

    @classmethod
    def empty(cls, employee_id: str) -> "AttendanceStatistics":
        return cls(employee_id=employee_id)

    @property
    def streak_state(self) -> StreakState:
        return StreakState(
            last_attendance=self.last_attendance,
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
        )

    def month_count(self, year: int, month: int) -> int:
        return int(self.monthly_count.get(int(year), {}).get(int(month), 0))

    def monthly_count_json(self) -> dict[str, dict[str, int]]:
        """JSON object keys are strings."""
        return {
            str(year): {str(month): int(count) for month, count in sorted(months.items())}
            for year, months in sorted(self.monthly_count.items())
        }

    @staticmethod
    def monthly_count_from_json(data: Optional[Mapping[str, Any]]) -> dict[int, dict[int, int]]:
        out: dict[int, dict[int, int]] = {}
        for year, months in (data or {}).items():
            out[int(year)] = {int(month): int(count) for month, count in (months or {}).items()}
        return out


@dataclass(frozen=True)
class RecomputeSummary:
    """Outcome of a backfill over many employees."""

    recomputed: dict[str, AttendanceStatistics]
    failed: list[str]
