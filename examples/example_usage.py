"""Example: drive the engine through the service layer.

Records one check-in and prints the derived calendar and statistics.
"""

from attendance_tracker.attendance.model import PhotoRef
from attendance_tracker.core.exceptions import DuplicateDayError
from attendance_tracker.main import create_container


def main():
    container = create_container()

    try:
        result = container.attendance_service.record_check_in(
            "E1",
            location="Head office",
            photos=[PhotoRef(url="https://cdn.example.com/e1/front.jpg")],
        )
        work_date = result.event.work_date
    except DuplicateDayError as exc:
        work_date = exc.existing.work_date
        print("Already checked in:", exc.existing)

    print(container.calendar_service.get_calendar("E1", work_date.year, work_date.month))
    print(container.statistics_service.get_statistics("E1", as_of=work_date))
    print(container.attendance_service.get_summary("E1", today=work_date))


if __name__ == "__main__":
    main()
