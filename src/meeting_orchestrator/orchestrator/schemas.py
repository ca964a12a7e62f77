"""Request and result types of the meeting orchestrator."""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from ..models.meeting import MeetingLocation, MeetingPayload, MeetingTime, Organizer, Participant
from ..models.slot import TimeSlot
from ..scheduling.recurrence import RecurrenceFrequency


class ScheduleMeetingRequest(BaseModel):
    """Schedule a meeting at a known time."""

    company_id: str
    organizer: Organizer
    participants: list[Participant] = Field(default_factory=list)
    subject: str
    description: Optional[str] = None
    time: MeetingTime
    location: MeetingLocation
    language: Optional[str] = None
    idempotency_key: Optional[str] = None


class DatePreference(BaseModel):
    start: str  # ISO 8601
    end: str  # ISO 8601


class AvailabilityRequest(BaseModel):
    """Find the first common free slot and schedule a meeting there."""

    company_id: str
    organizer: Organizer
    participant_emails: list[str]
    duration_minutes: int = Field(gt=0)
    date_preferences: list[DatePreference] = Field(min_length=1)
    timezone: str = "UTC"
    subject: str
    description: Optional[str] = None
    location: MeetingLocation
    language: Optional[str] = None
    idempotency_key: Optional[str] = None


class RecurringMeetingRequest(BaseModel):
    """Schedule a fixed number of recurring occurrences."""

    company_id: str
    organizer: Organizer
    participants: list[Participant] = Field(default_factory=list)
    subject: str
    description: Optional[str] = None
    frequency: RecurrenceFrequency
    count: int = Field(ge=1)
    start_date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    duration_minutes: int = Field(gt=0)
    timezone: str = "UTC"
    location: MeetingLocation


@dataclass
class AvailabilityResult:
    """Slots found and, when one was picked, the scheduled meeting."""

    available_slots: list[TimeSlot] = field(default_factory=list)
    scheduled_meeting: Optional[MeetingPayload] = None
