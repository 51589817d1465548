"""Tests for date utilities."""

from datetime import date

import pytest

from todotxt_engine.utils.datetime import (
    add_months,
    calculate_due_date,
    due_date_status,
    format_date,
    is_iso_date,
    parse_iso_date,
)


class TestIsoDates:
    """Test ISO date handling."""

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-05", True),
        ("2024-13-45", True),
        ("2024-1-5", False),
        ("20240105", False),
        ("", False),
        (None, False),
    ])
    def test_is_iso_date(self, value, expected):
        """Test only the YYYY-MM-DD shape is checked."""
        assert is_iso_date(value) is expected

    def test_parse_invalid_calendar_date(self):
        """Test impossible dates do not parse."""
        assert parse_iso_date("2024-02-30") is None
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 11, 30), 3, date(2025, 2, 28)),
        (date(2024, 5, 15), 12, date(2025, 5, 15)),
    ])
    def test_add_months_clamps(self, start, months, expected):
        """Test month arithmetic clamps to the month end."""
        assert add_months(start, months) == expected


class TestDisplay:
    """Test relative display helpers."""

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-05", "Today"),
        ("2024-01-04", "Yesterday"),
        ("2024-01-06", "Tomorrow"),
        ("2024-03-04", "Mar 4"),
        ("2023-12-25", "Dec 25, 2023"),
        ("soon", "soon"),
    ])
    def test_format_date(self, value, expected, today):
        """Test relative labels."""
        assert format_date(value, today) == expected

    def test_due_date_status(self, today):
        """Test overdue, today and upcoming classification."""
        assert due_date_status("2024-01-01", today) == "overdue"
        assert due_date_status("2024-01-05", today) == "today"
        assert due_date_status("2024-02-01", today) == "upcoming"
        assert due_date_status("later", today) is None


class TestCalculateDueDate:
    """Test due-date presets."""

    @pytest.mark.parametrize("option,expected", [
        ("Today", "2024-01-05"),
        ("Tomorrow", "2024-01-06"),
        ("Next Week", "2024-01-07"),
        ("Next Month", "2024-02-01"),
        ("Someday", "2024-01-05"),
    ])
    def test_presets(self, option, expected, today):
        """Test each preset from a Friday."""
        assert calculate_due_date(option, today) == expected

    def test_next_week_from_sunday(self):
        """Test 'Next Week' on a Sunday is a week later."""
        assert calculate_due_date("Next Week", date(2024, 1, 7)) == "2024-01-14"

    def test_next_month_in_december(self):
        """Test 'Next Month' rolls over the year."""
        assert calculate_due_date("Next Month", date(2024, 12, 31)) == "2025-01-01"
