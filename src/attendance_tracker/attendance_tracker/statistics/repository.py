from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceStatistics


class StatisticsRepository(Protocol):
    """Read side of the per-employee statistics rows."""

    def get(self, employee_id: str) -> Optional[AttendanceStatistics]:
        raise NotImplementedError
