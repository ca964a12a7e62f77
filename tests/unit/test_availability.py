"""Tests for scheduling/availability.py

The availability calculator walks a fixed 15-minute grid across the search
window and keeps every slot in which no participant is busy.
"""

import pytest

from meeting_orchestrator.models.slot import BusyInterval, ParticipantBusy, TimeSlot
from meeting_orchestrator.scheduling.availability import (
    build_availability_matrix,
    calculate_group_availability,
    calculate_slots_with_min_free,
    find_optimal_slots,
    generate_time_grid,
    group_slots_by_date,
    is_busy,
    summarize_matrix,
)
from meeting_orchestrator.utils.date_utils import to_epoch

NINE = to_epoch("2024-01-15T09:00:00Z")
TEN = to_epoch("2024-01-15T10:00:00Z")
ELEVEN = to_epoch("2024-01-15T11:00:00Z")
HALF_HOUR = 30 * 60


def busy(email: str, *ranges: tuple[str, str]) -> ParticipantBusy:
    return ParticipantBusy(
        email=email,
        intervals=[BusyInterval(start=to_epoch(s), end=to_epoch(e)) for s, e in ranges],
    )


class TestCalculateGroupAvailability:
    """Tests for the all-free slot search."""

    def test_slots_after_busy_morning(self):
        """Should return 10:00, 10:15 and 10:30 when one participant is busy until 10:00."""
        participants = [
            busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z")),
            busy("b@x.com"),
        ]

        slots = calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR)

        assert [s.start for s in slots] == [
            "2024-01-15T10:00:00Z",
            "2024-01-15T10:15:00Z",
            "2024-01-15T10:30:00Z",
        ]
        assert slots[-1].end == "2024-01-15T11:00:00Z"
        assert all(s.available_participants == ["a@x.com", "b@x.com"] for s in slots)
        assert all(s.all_available for s in slots)

    def test_everyone_free(self):
        """Should return every grid position when nobody is busy."""
        slots = calculate_group_availability([busy("a@x.com")], NINE, ELEVEN, HALF_HOUR)

        assert len(slots) == 7
        assert slots[0].start == "2024-01-15T09:00:00Z"
        assert slots[-1].start == "2024-01-15T10:30:00Z"

    def test_busy_across_window(self):
        """Should return nothing when someone is busy for the whole window."""
        participants = [busy("a@x.com", ("2024-01-15T08:00:00Z", "2024-01-15T12:00:00Z"))]

        assert calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR) == []

    def test_back_to_back_interval_does_not_block(self):
        """A slot starting exactly when a meeting ends is free."""
        participants = [busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T10:30:00Z"))]

        slots = calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR)

        assert [s.start for s in slots] == ["2024-01-15T10:30:00Z"]

    def test_window_shorter_than_duration(self):
        """Should return nothing when the meeting does not fit."""
        assert calculate_group_availability([busy("a@x.com")], NINE, NINE + 600, HALF_HOUR) == []

    @pytest.mark.parametrize("duration", [0, -60])
    def test_non_positive_duration(self, duration):
        """Should return nothing rather than loop forever."""
        assert calculate_group_availability([busy("a@x.com")], NINE, ELEVEN, duration) == []

    def test_zero_length_interval_is_ignored(self):
        """A zero-length busy interval never blocks a slot."""
        participants = [busy("a@x.com", ("2024-01-15T09:10:00Z", "2024-01-15T09:10:00Z"))]

        slots = calculate_group_availability(participants, NINE, TEN, HALF_HOUR)

        assert slots[0].start == "2024-01-15T09:00:00Z"

    def test_custom_increment(self):
        """Should step the grid by the given increment."""
        slots = calculate_group_availability([busy("a@x.com")], NINE, ELEVEN, HALF_HOUR, 30 * 60)

        assert [s.start for s in slots] == [
            "2024-01-15T09:00:00Z",
            "2024-01-15T09:30:00Z",
            "2024-01-15T10:00:00Z",
            "2024-01-15T10:30:00Z",
        ]

    def test_same_input_same_output(self):
        """Should be a pure function of its inputs."""
        participants = [busy("a@x.com", ("2024-01-15T09:30:00Z", "2024-01-15T09:45:00Z"))]

        first = calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR)
        second = calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR)

        assert first == second


class TestIsBusy:
    def test_partial_overlap(self):
        assert is_busy([BusyInterval(start=100, end=200)], 150, 250)

    def test_touching_is_not_overlap(self):
        assert not is_busy([BusyInterval(start=100, end=200)], 200, 300)


class TestSlotsWithMinFree:
    """Tests for the relaxed search used when not everyone can attend."""

    def test_reports_who_is_free(self):
        """Should list the free participants and flag partial slots."""
        participants = [
            busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z")),
            busy("b@x.com"),
        ]

        slots = calculate_slots_with_min_free(participants, NINE, ELEVEN, HALF_HOUR, min_free=1)

        assert slots[0].start == "2024-01-15T09:00:00Z"
        assert slots[0].available_participants == ["b@x.com"]
        assert slots[0].all_available is False
        assert slots[-1].all_available is True

    def test_threshold_excludes_slots(self):
        """Should drop slots with fewer free participants than required."""
        participants = [
            busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z")),
            busy("b@x.com"),
        ]

        slots = calculate_slots_with_min_free(participants, NINE, ELEVEN, HALF_HOUR, min_free=2)

        assert slots[0].start == "2024-01-15T10:00:00Z"


class TestAvailabilityMatrix:
    """Tests for the per-participant free/busy grid."""

    def test_grid_clips_last_slot(self):
        assert generate_time_grid(0, 2500, 900) == [(0, 900), (900, 1800), (1800, 2500)]

    def test_matrix_and_summary(self):
        """Should mark each participant per slot and count slot categories."""
        participants = [
            busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T09:30:00Z")),
            busy("b@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T09:15:00Z")),
        ]

        matrix = build_availability_matrix(participants, NINE, TEN, 15 * 60)

        assert [s.availability for s in matrix[:2]] == [
            {"a@x.com": "busy", "b@x.com": "busy"},
            {"a@x.com": "busy", "b@x.com": "free"},
        ]
        summary = summarize_matrix(matrix)
        assert summary.total_slots == 4
        assert summary.all_busy_slots == 1
        assert summary.some_free_slots == 1
        assert summary.all_free_slots == 2

    def test_find_optimal_slots(self):
        """Should filter by free count, in order, up to the limit."""
        participants = [
            busy("a@x.com", ("2024-01-15T09:00:00Z", "2024-01-15T09:30:00Z")),
            busy("b@x.com"),
        ]
        matrix = build_availability_matrix(participants, NINE, TEN, 15 * 60)

        all_free = find_optimal_slots(matrix)
        some_free = find_optimal_slots(matrix, require_all_free=False, min_free_count=1, limit=3)

        assert [s.start for s in all_free] == ["2024-01-15T09:30:00Z", "2024-01-15T09:45:00Z"]
        assert len(some_free) == 3


def test_group_slots_by_date():
    """Should group by UTC date, keeping order within each day."""
    slots = [
        TimeSlot(start="2024-01-15T09:00:00Z", end="2024-01-15T09:30:00Z"),
        TimeSlot(start="2024-01-15T10:00:00Z", end="2024-01-15T10:30:00Z"),
        TimeSlot(start="2024-01-16T09:00:00Z", end="2024-01-16T09:30:00Z"),
    ]

    grouped = group_slots_by_date(slots)

    assert list(grouped) == ["2024-01-15", "2024-01-16"]
    assert len(grouped["2024-01-15"]) == 2


class TestSlotProperties:
    """Properties that hold for any busy set."""

    def test_window_around_single_interval(self):
        """Only slots intersecting [t1, t2) are excluded from [t1-d, t2+d)."""
        t1, t2, d = TEN, TEN + 45 * 60, HALF_HOUR
        participants = [ParticipantBusy(email="a@x.com", intervals=[BusyInterval(start=t1, end=t2)])]

        slots = calculate_group_availability(participants, t1 - d, t2 + d, d)

        starts = [to_epoch(s.start) for s in slots]
        expected = [
            s for s in range(t1 - d, t2 + 1, 15 * 60)
            if s + d <= t2 + d and not (s < t2 and s + d > t1)
        ]
        assert starts == expected
        assert starts[0] == t1 - d
        assert starts[-1] == t2

    def test_listed_slots_are_free_for_everyone(self):
        participants = [
            busy("a@x.com", ("2024-01-15T09:10:00Z", "2024-01-15T09:40:00Z")),
            busy("b@x.com", ("2024-01-15T10:05:00Z", "2024-01-15T10:20:00Z")),
        ]

        slots = calculate_group_availability(participants, NINE, ELEVEN, HALF_HOUR)

        assert slots
        for slot in slots:
            start, end = to_epoch(slot.start), to_epoch(slot.end)
            assert not any(is_busy(p.intervals, start, end) for p in participants)

    def test_no_participants(self):
        """Every grid slot qualifies when there is nobody to check."""
        slots = calculate_group_availability([], NINE, TEN, HALF_HOUR)

        assert len(slots) == 3
        assert all(s.available_participants == [] for s in slots)
