"""
Appointment time windows
Maps booking window labels to clock hours and derives the scheduled end of a job
"""

from datetime import datetime, timedelta
from typing import Optional

from ..schemas import AutoCompleteConfig, TimeWindow

DEFAULT_TIME_WINDOW = "anytime"

TIME_WINDOWS = {
    "anytime": TimeWindow(start=8, end=18),
    "10-3": TimeWindow(start=10, end=15),
    "11-4": TimeWindow(start=11, end=16),
    "12-2": TimeWindow(start=12, end=14),
}


def parse_time_window(time_window: Optional[str]) -> TimeWindow:
    """Resolve a window label to start/end hours; unknown labels mean anytime"""
    return TIME_WINDOWS.get(time_window or DEFAULT_TIME_WINDOW, TIME_WINDOWS[DEFAULT_TIME_WINDOW])


def _local_datetime(date_str: str, hour: int) -> datetime:
    # Build from the date parts so no UTC parsing can shift the hour
    year, month, day = (int(part) for part in date_str.split("-"))
    return datetime(year, month, day, hour, 0, 0)


def calculate_scheduled_end_time(date_str: str, time_window: Optional[str]) -> datetime:
    """
    Calculate when the appointment's work window ends

    Args:
        date_str: Appointment date (YYYY-MM-DD), service-local
        time_window: Window label like "anytime", "10-3"

    Returns:
        Naive local datetime at the window's end hour

    Raises:
        ValueError: If the date is malformed
    """
    return _local_datetime(date_str, parse_time_window(time_window).end)


def calculate_auto_complete_at(scheduled_end_time: datetime, config: AutoCompleteConfig) -> datetime:
    """Deadline after which the system submits the job on the cleaner's behalf"""
    return scheduled_end_time + timedelta(hours=config.hours_after_end)
