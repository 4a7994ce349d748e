"""
Time Window Tests

HH:MM parsing, weekday parsing and half-open interval arithmetic.
"""

import pytest

from utils.errors import InvalidTimeFormatError
from utils.scheduling import TimeWindow, Weekday, parse_time, format_minutes


class TestParseTime:
    """HH:MM validation."""

    @pytest.mark.parametrize("value,minutes", [
        ("00:00", 0),
        ("9:00", 540),
        ("09:30", 570),
        ("23:59", 1439),
    ])
    def test_valid_times(self, value, minutes):
        assert parse_time(value) == minutes

    @pytest.mark.parametrize("value", ["24:00", "9:60", "9", "09:5", "abc", "", "12:00pm", None, 900])
    def test_invalid_times(self, value):
        with pytest.raises(InvalidTimeFormatError):
            parse_time(value)

    def test_format_pads_hours(self):
        assert format_minutes(parse_time("9:05")) == "09:05"
        assert format_minutes(0) == "00:00"


class TestWeekday:
    """Weekday parsing, Monday = 0 like date.weekday()."""

    @pytest.mark.parametrize("value,expected", [
        (0, Weekday.MONDAY),
        (6, Weekday.SUNDAY),
        ("3", Weekday.THURSDAY),
        ("monday", Weekday.MONDAY),
        ("Friday", Weekday.FRIDAY),
        (" SUNDAY ", Weekday.SUNDAY),
    ])
    def test_parse(self, value, expected):
        assert Weekday.parse(value) == expected

    @pytest.mark.parametrize("value", [7, -1, "funday", True, 1.5, None])
    def test_parse_rejects(self, value):
        with pytest.raises(InvalidTimeFormatError):
            Weekday.parse(value)

    def test_label(self):
        assert Weekday.WEDNESDAY.label == "Wednesday"


class TestTimeWindow:
    """Half-open interval behaviour."""

    def test_start_must_precede_end(self):
        with pytest.raises(InvalidTimeFormatError):
            TimeWindow.from_strings("10:00", "10:00")
        with pytest.raises(InvalidTimeFormatError):
            TimeWindow.from_strings("11:00", "10:00")

    def test_string_forms_are_zero_padded(self):
        window = TimeWindow.from_strings("9:00", "9:45")
        assert window.start_str == "09:00"
        assert str(window) == "09:00-09:45"
