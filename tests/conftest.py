"""Pytest configuration and shared fixtures."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todotxt_engine.parser import parse_line  # noqa: E402


TODAY = date(2024, 1, 5)


@pytest.fixture
def today():
    """Fixed reference date (a Friday)."""
    return TODAY


@pytest.fixture
def sample_records():
    """A small mixed task list."""
    lines = [
        "(B) 2024-01-02 Write report +Work @office due:2024-01-05",
        "(A) 2024-01-03 Buy milk +Errands @store due:2024-01-10",
        "2024-01-04 Call mom @phone",
        "Plan trip +Travel due:2024-01-03",
        "x 2024-01-04 2024-01-01 Pay rent +Home pri:C",
        "x 2024-01-02 Renew passport +Travel",
        "Old idea +Archived origProj:Work",
    ]
    return [parse_line(line, index) for index, line in enumerate(lines)]
