from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..core.exceptions import DuplicateDayError


@dataclass(frozen=True)
class StreakState:
    """Streak counters carried from one check-in to the next."""

    last_attendance: Optional[date] = None
    current_streak: int = 0
    longest_streak: int = 0


def day_gap(previous: date, current: date) -> int:
    return (current - previous).days


def advance(state: StreakState, attendance_date: date) -> StreakState:
    """Fold one new presence day into the streak counters.

    Dates must arrive in ascending order with no repeats: a repeated day means
    an event was counted twice, an earlier day means the caller should replay.
    """
    if state.last_attendance is None:
        current = 1
    else:
        gap = day_gap(state.last_attendance, attendance_date)
        if gap == 0:
            raise DuplicateDayError(f"{attendance_date.isoformat()} is already counted in the streak")
        if gap < 0:
            raise ValueError(
                f"{attendance_date.isoformat()} is before last attendance {state.last_attendance.isoformat()}"
            )
        current = state.current_streak + 1 if gap == 1 else 1

    return StreakState(
        last_attendance=attendance_date,
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
    )


def replay(dates: Iterable[date]) -> StreakState:
    """Recompute streak counters from a full history, in any input order."""
    state = StreakState()
    for d in sorted(dates):
        state = advance(state, d)
    return state
