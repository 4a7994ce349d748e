"""
Time-of-day arithmetic for availability slots and appointments.

Times travel as ``HH:MM`` strings (24-hour clock) and are compared as
minutes since midnight. Windows are half-open, so 09:00-10:00 and
10:00-11:00 touch but do not overlap.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from utils.errors import InvalidTimeFormatError

# Same pattern the booking forms have always accepted ("9:00" and "09:00")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


class Weekday(IntEnum):
    """Day of week, numbered like ``date.weekday()``."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value: Union[int, str, "Weekday"]) -> "Weekday":
        """
        Accept a weekday as an int (0-6), a digit string or a name.

        Raises:
            InvalidTimeFormatError: if the value names no weekday
        """
        if isinstance(value, bool):
            raise InvalidTimeFormatError(f"Invalid day of week: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidTimeFormatError(f"Invalid day of week: {value!r}") from None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise InvalidTimeFormatError(f"Invalid day of week: {value!r}") from None
        raise InvalidTimeFormatError(f"Invalid day of week: {value!r}")

    @property
    def label(self) -> str:
        return self.name.capitalize()


def parse_time(value: str) -> int:
    """
    Convert ``HH:MM`` to minutes since midnight.

    Raises:
        InvalidTimeFormatError: if the value is not a 24-hour time
    """
    if not isinstance(value, str):
        raise InvalidTimeFormatError(f"Invalid time: {value!r}")
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeFormatError(f"Invalid time: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as zero-padded ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) interval in minutes since midnight."""
    start: int
    end: int

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeWindow":
        """
        Build a window from two ``HH:MM`` strings.

        Raises:
            InvalidTimeFormatError: on malformed times or start >= end
        """
        window = cls(parse_time(start), parse_time(end))
        if window.start >= window.end:
            raise InvalidTimeFormatError(
                f"Start time {start} must be before end time {end}"
            )
        return window

    @property
    def start_str(self) -> str:
        return format_minutes(self.start)

    @property
    def end_str(self) -> str:
        return format_minutes(self.end)

    def __str__(self) -> str:
        return f"{self.start_str}-{self.end_str}"
