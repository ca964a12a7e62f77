"""Date and time utilities for Meeting Orchestrator application."""

from datetime import datetime, timezone
from typing import Union

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC. A trailing ``Z`` is accepted.
    """
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def to_epoch(value: Union[str, datetime]) -> int:
    """Convert an ISO string or datetime to whole epoch seconds."""
    dt = parse_iso(value) if isinstance(value, str) else ensure_utc(value)
    return int(dt.timestamp())


def epoch_to_iso(seconds: int) -> str:
    """Render epoch seconds as a ``Z``-suffixed UTC ISO string."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime(
        "%Y-%m-%dT%H:%M:%SZ"
    )


def calculate_duration(start: str, end: str) -> int:
    """
    Whole minutes between two ISO timestamps (floored).

    Args:
        start: ISO 8601 start
        end: ISO 8601 end

    Returns:
        Duration in minutes
    """
    delta = parse_iso(end) - parse_iso(start)
    return int(delta.total_seconds() // 60)


def format_datetime(iso_string: str, tz_name: str = "UTC") -> str:
    """
    Human-readable date and time in the given IANA timezone.

    Example: ``Monday, January 15, 2024 at 9:00 AM EST``
    """
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    local = parse_iso(iso_string).astimezone(tz)
    hour = local.strftime("%I").lstrip("0") or "12"
    return (
        f"{local:%A, %B} {local.day}, {local.year} at "
        f"{hour}:{local:%M %p %Z}"
    )


def time_ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap: ``[start_a, end_a)`` against ``[start_b, end_b)``."""
    return start_a < end_b and end_a > start_b
