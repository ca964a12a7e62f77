"""Interval availability calculations.

All functions here are pure: given the same busy intervals and search
window they return the same slots. Times are epoch seconds; slots are
half-open ``[start, start + duration)`` and walk a fixed grid from the
search start.
"""

from collections import OrderedDict
from typing import Iterable, Optional

from ..models.slot import (
    AvailabilitySlot,
    AvailabilitySummary,
    BusyInterval,
    ParticipantBusy,
    TimeSlot,
)
from ..utils.date_utils import epoch_to_iso, time_ranges_overlap

SLOT_INCREMENT_SECONDS = 15 * 60


def _slot_starts(
    search_start: int, search_end: int, duration_seconds: int, increment_seconds: int
) -> Iterable[int]:
    if duration_seconds <= 0 or increment_seconds <= 0:
        return
    current = search_start
    while current + duration_seconds <= search_end:
        yield current
        current += increment_seconds


def is_busy(intervals: Iterable[BusyInterval], slot_start: int, slot_end: int) -> bool:
    """True if any interval overlaps the slot. Zero-length intervals never do."""
    return any(
        i.end > i.start and time_ranges_overlap(i.start, i.end, slot_start, slot_end)
        for i in intervals
    )


def _busy_emails(
    participants: list[ParticipantBusy], slot_start: int, slot_end: int
) -> set[str]:
    return {
        p.email for p in participants if is_busy(p.intervals, slot_start, slot_end)
    }


def calculate_group_availability(
    participants: list[ParticipantBusy],
    search_start: int,
    search_end: int,
    duration_seconds: int,
    increment_seconds: int = SLOT_INCREMENT_SECONDS,
) -> list[TimeSlot]:
    """
    Find every slot of ``duration_seconds`` where all participants are free.

    Args:
        participants: Busy intervals per participant
        search_start: Window start (epoch seconds)
        search_end: Window end (epoch seconds)
        duration_seconds: Required meeting length
        increment_seconds: Grid step between candidate starts

    Returns:
        Chronological list of qualifying slots; empty when there is none
    """
    emails = list(dict.fromkeys(p.email for p in participants))
    slots = []

    for start in _slot_starts(search_start, search_end, duration_seconds, increment_seconds):
        end = start + duration_seconds
        if _busy_emails(participants, start, end):
            continue
        slots.append(
            TimeSlot(
                start=epoch_to_iso(start),
                end=epoch_to_iso(end),
                available_participants=list(emails),
                all_available=True,
            )
        )

    return slots


def calculate_slots_with_min_free(
    participants: list[ParticipantBusy],
    search_start: int,
    search_end: int,
    duration_seconds: int,
    min_free: int,
    increment_seconds: int = SLOT_INCREMENT_SECONDS,
) -> list[TimeSlot]:
    """Slots where at least ``min_free`` participants are free."""
    emails = list(dict.fromkeys(p.email for p in participants))
    slots = []

    for start in _slot_starts(search_start, search_end, duration_seconds, increment_seconds):
        end = start + duration_seconds
        busy = _busy_emails(participants, start, end)
        free = [e for e in emails if e not in busy]
        if len(free) < min_free:
            continue
        slots.append(
            TimeSlot(
                start=epoch_to_iso(start),
                end=epoch_to_iso(end),
                available_participants=free,
                all_available=len(free) == len(emails),
            )
        )

    return slots


def generate_time_grid(
    search_start: int, search_end: int, increment_seconds: int
) -> list[tuple[int, int]]:
    """Consecutive ``(start, end)`` boundaries; the last one is clipped to the window."""
    grid = []
    current = search_start
    while increment_seconds > 0 and current < search_end:
        grid.append((current, min(current + increment_seconds, search_end)))
        current += increment_seconds
    return grid


def build_availability_matrix(
    participants: list[ParticipantBusy],
    search_start: int,
    search_end: int,
    slot_seconds: int,
) -> list[AvailabilitySlot]:
    """Free/busy verdict per participant for every grid slot."""
    matrix = []
    for start, end in generate_time_grid(search_start, search_end, slot_seconds):
        matrix.append(
            AvailabilitySlot(
                start=epoch_to_iso(start),
                end=epoch_to_iso(end),
                availability={
                    p.email: "busy" if is_busy(p.intervals, start, end) else "free"
                    for p in participants
                },
            )
        )
    return matrix


def summarize_matrix(matrix: list[AvailabilitySlot]) -> AvailabilitySummary:
    summary = AvailabilitySummary()
    for slot in matrix:
        statuses = list(slot.availability.values())
        all_free = all(s == "free" for s in statuses)
        all_busy = all(s == "busy" for s in statuses)
        summary.total_slots += 1
        if all_free:
            summary.all_free_slots += 1
        elif all_busy:
            summary.all_busy_slots += 1
        else:
            summary.some_free_slots += 1
    return summary


def find_optimal_slots(
    matrix: list[AvailabilitySlot],
    require_all_free: bool = True,
    min_free_count: int = 1,
    limit: Optional[int] = 10,
) -> list[AvailabilitySlot]:
    """Filter matrix slots by free count, keeping chronological order."""
    selected = [
        slot
        for slot in matrix
        if (
            slot.free_count == len(slot.availability)
            if require_all_free
            else slot.free_count >= min_free_count
        )
    ]
    return selected if limit is None else selected[:limit]


def group_slots_by_date(slots: list[TimeSlot]) -> "OrderedDict[str, list[TimeSlot]]":
    """Group slots by the UTC date of their start."""
    grouped: OrderedDict[str, list[TimeSlot]] = OrderedDict()
    for slot in slots:
        grouped.setdefault(slot.start.split("T")[0], []).append(slot)
    return grouped
