"""Pipeline stages for meeting scheduling."""

from typing import Protocol

from ..agents.calendar import CalendarAgent
from ..agents.contacts import ContactsAgent
from ..agents.email import EmailAgent
from ..models.meeting import MeetingPayload, MeetingStatus


class PipelineStage(Protocol):
    """Protocol for scheduling pipeline stages."""

    name: str
    required: bool

    def run(self, payload: MeetingPayload) -> MeetingPayload:
        """
        Run the stage.

        Args:
            payload: Payload produced by the previous stage

        Returns:
            Copy of the payload with this stage's fields populated
        """
        ...


class EnrichContactsStage:
    """Merge directory data into participants. Best-effort."""

    name = "contacts"
    required = False

    def __init__(self, contacts: ContactsAgent):
        self.contacts = contacts

    def run(self, payload: MeetingPayload) -> MeetingPayload:
        enriched = self.contacts.enrich_participants(
            payload.company_id, payload.organizer.email, payload.participants
        )
        return payload.with_participants(enriched)


class CreateEventStage:
    """Create the calendar event. A failure aborts the pipeline."""

    name = "calendar"
    required = True

    def __init__(self, calendar: CalendarAgent):
        self.calendar = calendar

    def run(self, payload: MeetingPayload) -> MeetingPayload:
        return self.calendar.create_event_for_meeting(payload).advance(
            MeetingStatus.SCHEDULED
        )


class SendInviteStage:
    """Email the invitation. Best-effort; the event already exists."""

    name = "email"
    required = False

    def __init__(self, email: EmailAgent):
        self.email = email

    def run(self, payload: MeetingPayload) -> MeetingPayload:
        return self.email.send_meeting_invite(payload)
