"""Tests for utils/date_utils.py"""

from datetime import datetime

import pytest
import pytz

from meeting_orchestrator.utils.date_utils import (
    calculate_duration,
    epoch_to_iso,
    format_datetime,
    parse_iso,
    time_ranges_overlap,
    to_epoch,
)


class TestParsing:
    def test_z_suffix_and_offset_agree(self):
        assert to_epoch("2024-01-15T09:00:00Z") == to_epoch("2024-01-15T04:00:00-05:00")

    def test_naive_is_utc(self):
        assert parse_iso("2024-01-15T09:00:00").tzinfo is not None
        assert to_epoch("2024-01-15T09:00:00") == to_epoch("2024-01-15T09:00:00Z")

    def test_datetime_input(self):
        dt = datetime(2024, 1, 15, 9, 0, tzinfo=pytz.utc)

        assert epoch_to_iso(to_epoch(dt)) == "2024-01-15T09:00:00Z"


class TestFormatting:
    def test_calculate_duration_floors(self):
        assert calculate_duration("2024-01-15T09:00:00Z", "2024-01-15T09:45:59Z") == 45

    def test_format_in_timezone(self):
        assert (
            format_datetime("2024-07-04T16:30:00Z", "Europe/Zurich")
            == "Thursday, July 4, 2024 at 6:30 PM CEST"
        )

    def test_unknown_timezone_falls_back_to_utc(self):
        assert format_datetime("2024-01-15T00:05:00Z", "Mars/Olympus").endswith("12:05 AM UTC")


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((0, 10), (5, 15), True),
        ((0, 10), (10, 20), False),
        ((5, 6), (0, 10), True),
        ((0, 10), (20, 30), False),
    ],
)
def test_time_ranges_overlap(a, b, expected):
    assert time_ranges_overlap(*a, *b) is expected
