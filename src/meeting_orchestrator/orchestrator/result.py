"""Result values and human-readable summaries for orchestrator callers."""

from typing import Union

from pydantic import ValidationError

from ..models.meeting import MeetingPayload, MeetingStatus
from ..utils.concurrency import Failure, Success
from ..utils.date_utils import format_datetime
from ..utils.exceptions import (
    ConfigurationError,
    GrantNotFoundError,
    MeetingStateError,
    ProviderError,
)
from .schemas import AvailabilityResult

# Same shape as fan-out outcomes: Ok(value) / Err(error), told apart by ``ok``
Ok = Success
Err = Failure
Result = Union[Success, Failure]


def status_code_for(error: Exception) -> int:
    """HTTP status an API layer should answer with for ``error``."""
    if isinstance(error, GrantNotFoundError):
        return 404
    if isinstance(error, (ConfigurationError, ValidationError)):
        return 400
    if isinstance(error, MeetingStateError):
        return 409
    if isinstance(error, ProviderError):
        return 502
    return 500


def summarize_meeting(payload: MeetingPayload) -> str:
    count = len(payload.participants)
    when = format_datetime(payload.time.start, payload.time.timezone)
    lines = [
        f'Meeting "{payload.subject}" scheduled for {when} '
        f"with {count} participant{'s' if count != 1 else ''}."
    ]

    if payload.calendar and payload.calendar.calendar_event_id:
        lines.append(f"Calendar event {payload.calendar.calendar_event_id} created.")
    if payload.location.join_url:
        lines.append(f"Join link: {payload.location.join_url}")

    if payload.status == MeetingStatus.SENT:
        lines.append("Invitations sent.")
    elif payload.email is None:
        lines.append("Invitation email was not sent; notify participants separately.")

    return " ".join(lines)


def summarize_availability(result: AvailabilityResult) -> str:
    if not result.available_slots:
        return "No time slot found where all participants are available."

    count = len(result.available_slots)
    summary = f"Found {count} available slot{'s' if count != 1 else ''}."
    if result.scheduled_meeting is not None:
        summary += " " + summarize_meeting(result.scheduled_meeting)
    return summary
