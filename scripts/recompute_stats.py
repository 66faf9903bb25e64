"""Rebuild statistics and month calendars from the stored check-ins.

Usage:
    python scripts/recompute_stats.py                 # every employee
    python scripts/recompute_stats.py --employee E1   # one employee
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "attendance_tracker"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from attendance_tracker.core.exceptions import DomainError
from attendance_tracker.main import create_container

logger = logging.getLogger("recompute_stats")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--employee", action="append", default=[], help="employee id (repeatable)")
    args = parser.parse_args(argv)

    container = create_container()
    service = container.statistics_service

    if not args.employee:
        summary = service.recompute_all()
        for employee_id, stats in summary.recomputed.items():
            logger.info("%s: total_days=%d current_streak=%d", employee_id, stats.total_days, stats.current_streak)
        logger.info("Recomputed %d employees, %d failed", len(summary.recomputed), len(summary.failed))
        return 1 if summary.failed else 0

    failed = 0
    for employee_id in args.employee:
        try:
            stats = service.recompute_statistics(employee_id)
        except DomainError as exc:
            failed += 1
            logger.error("%s: %s", employee_id, exc)
            continue
        logger.info("%s: total_days=%d current_streak=%d", employee_id, stats.total_days, stats.current_streak)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
