"""Meeting payload threaded through the orchestration pipeline."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

import pytz
from pydantic import BaseModel, Field

from ..utils.exceptions import MeetingStateError


class MeetingStatus(str, Enum):
    """Meeting lifecycle status."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Forward order; CANCELLED is reachable from any non-cancelled status
_STATUS_RANK = {
    MeetingStatus.DRAFT: 0,
    MeetingStatus.SCHEDULED: 1,
    MeetingStatus.SENT: 2,
    MeetingStatus.CONFIRMED: 3,
}


class LocationType(str, Enum):
    PHYSICAL = "physical"
    VIDEO = "video"
    PHONE = "phone"


class ParticipantStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Organizer(BaseModel):
    name: str
    email: str
    user_id: Optional[str] = None


class Participant(BaseModel):
    contact_id: Optional[str] = None
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    status: ParticipantStatus = ParticipantStatus.PENDING


class MeetingTime(BaseModel):
    start: str  # ISO 8601
    end: str  # ISO 8601
    timezone: str = "UTC"
    duration_minutes: Optional[int] = None


class MeetingLocation(BaseModel):
    type: LocationType
    provider: Optional[str] = None  # zoom, google_meet, teams, custom
    join_url: Optional[str] = None
    physical_address: Optional[str] = None
    dial_in: Optional[str] = None


class CalendarReference(BaseModel):
    calendar_event_id: Optional[str] = None
    calendar_html_link: Optional[str] = None
    calendar_id: Optional[str] = None
    ical_uid: Optional[str] = None


class EmailReference(BaseModel):
    message_id: Optional[str] = None
    thread_id: Optional[str] = None
    sent_at: Optional[str] = None


class MeetingMeta(BaseModel):
    source: str = "ai_assistant"
    language: str = "en"
    created_at: str
    updated_at: str
    status: MeetingStatus = MeetingStatus.DRAFT
    idempotency_key: Optional[str] = None


def utc_now_iso() -> str:
    return datetime.now(pytz.utc).isoformat()


def generate_meeting_id() -> str:
    return str(uuid.uuid4())


class MeetingPayload(BaseModel):
    """
    Unit of work threaded through Contacts -> Calendar -> Email.

    Each stage returns a copy with its own fields populated. Status only
    moves forward (draft -> scheduled -> sent -> confirmed) or to
    cancelled, after which the payload accepts no further changes.
    """

    meeting_id: str = Field(default_factory=generate_meeting_id)
    subject: str
    description: Optional[str] = None
    company_id: str
    organizer: Organizer
    participants: list[Participant] = Field(default_factory=list)
    time: MeetingTime
    location: MeetingLocation
    calendar: Optional[CalendarReference] = None
    email: Optional[EmailReference] = None
    meta: MeetingMeta

    model_config = {"frozen": True}

    @property
    def status(self) -> MeetingStatus:
        return self.meta.status

    @property
    def is_cancelled(self) -> bool:
        return self.meta.status == MeetingStatus.CANCELLED

    def _ensure_mutable(self) -> None:
        if self.is_cancelled:
            raise MeetingStateError(
                f"Meeting {self.meeting_id} is cancelled and cannot be changed"
            )

    def _touch(self, **updates) -> "MeetingPayload":
        meta = self.meta.model_copy(update={"updated_at": utc_now_iso()})
        return self.model_copy(update={**updates, "meta": meta})

    def advance(self, status: MeetingStatus) -> "MeetingPayload":
        """
        Return a copy moved to ``status``.

        Raises:
            MeetingStateError: If the payload is cancelled or the move
                would regress the status
        """
        self._ensure_mutable()
        status = MeetingStatus(status)

        if status != MeetingStatus.CANCELLED:
            if _STATUS_RANK[status] < _STATUS_RANK[self.meta.status]:
                raise MeetingStateError(
                    f"Meeting {self.meeting_id} cannot move from "
                    f"{self.meta.status.value} back to {status.value}"
                )

        meta = self.meta.model_copy(
            update={"status": status, "updated_at": utc_now_iso()}
        )
        return self.model_copy(update={"meta": meta})

    def with_participants(self, participants: list[Participant]) -> "MeetingPayload":
        self._ensure_mutable()
        return self._touch(participants=list(participants))

    def with_calendar(
        self,
        calendar: CalendarReference,
        location: Optional[MeetingLocation] = None,
    ) -> "MeetingPayload":
        self._ensure_mutable()
        updates = {"calendar": calendar}
        if location is not None:
            updates["location"] = location
        return self._touch(**updates)

    def with_email(self, email: EmailReference) -> "MeetingPayload":
        self._ensure_mutable()
        return self._touch(email=email)

    def with_time(self, time: MeetingTime) -> "MeetingPayload":
        self._ensure_mutable()
        return self._touch(time=time)

    def with_location(self, location: MeetingLocation) -> "MeetingPayload":
        self._ensure_mutable()
        return self._touch(location=location)
