"""Tests for scheduling/recurrence.py"""

from meeting_orchestrator.scheduling.recurrence import RecurrenceFrequency, generate_occurrences


def test_daily_follows_wall_clock_across_dst():
    """09:00 New York stays 09:00 local when clocks change."""
    occurrences = generate_occurrences(
        "2024-03-08", "09:00", 30, RecurrenceFrequency.DAILY, 3, "America/New_York"
    )

    assert [o.start for o in occurrences] == [
        "2024-03-08T14:00:00Z",
        "2024-03-09T14:00:00Z",
        "2024-03-10T13:00:00Z",
    ]
    assert occurrences[0].end == "2024-03-08T14:30:00Z"
    assert [o.index for o in occurrences] == [1, 2, 3]


def test_monthly_clamps_to_month_end():
    occurrences = generate_occurrences("2024-01-31", "10:00", 60, "monthly", 4)

    assert [o.start[:10] for o in occurrences] == [
        "2024-01-31",
        "2024-02-29",
        "2024-03-31",
        "2024-04-30",
    ]


def test_monthly_crosses_year():
    occurrences = generate_occurrences("2024-11-15", "10:00", 60, RecurrenceFrequency.MONTHLY, 3)

    assert [o.start[:7] for o in occurrences] == ["2024-11", "2024-12", "2025-01"]
