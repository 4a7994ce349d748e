"""Scheduling helpers: weekdays, HH:MM parsing and time windows."""

from .time_windows import (
    Weekday,
    TimeWindow,
    parse_time,
    format_minutes,
)

__all__ = [
    "Weekday",
    "TimeWindow",
    "parse_time",
    "format_minutes",
]
