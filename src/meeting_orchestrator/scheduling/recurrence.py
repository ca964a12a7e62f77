"""Occurrence generation for recurring meetings."""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

import pytz

from ..utils.date_utils import ensure_utc


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Occurrence:
    index: int  # 1-based
    start: str  # ISO 8601, UTC
    end: str


def _add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def generate_occurrences(
    start_date: str,
    start_time: str,
    duration_minutes: int,
    frequency: RecurrenceFrequency,
    count: int,
    tz_name: str = "UTC",
) -> list[Occurrence]:
    """
    Occurrence windows for a recurring meeting.

    Args:
        start_date: First date, ``YYYY-MM-DD``
        start_time: Local start time, ``HH:MM``
        duration_minutes: Length of each occurrence
        frequency: daily, weekly or monthly
        count: Number of occurrences
        tz_name: IANA timezone the wall-clock time is expressed in

    Returns:
        Occurrences with UTC ISO start/end. Monthly occurrences clamp to the
        last day of shorter months.
    """
    tz = pytz.timezone(tz_name)
    base = datetime.strptime(f"{start_date} {start_time}", "%Y-%m-%d %H:%M")
    frequency = RecurrenceFrequency(frequency)

    occurrences = []
    for i in range(count):
        if frequency == RecurrenceFrequency.DAILY:
            local = base + timedelta(days=i)
        elif frequency == RecurrenceFrequency.WEEKLY:
            local = base + timedelta(weeks=i)
        else:
            local = _add_months(base, i)

        start = ensure_utc(tz.localize(local))
        end = start + timedelta(minutes=duration_minutes)
        occurrences.append(
            Occurrence(
                index=i + 1,
                start=start.strftime("%Y-%m-%dT%H:%M:%SZ"),
                end=end.strftime("%Y-%m-%dT%H:%M:%SZ"),
            )
        )
    return occurrences
