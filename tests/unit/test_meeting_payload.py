"""Tests for models/meeting.py

Status moves forward only (draft -> scheduled -> sent -> confirmed), may
jump to cancelled from anywhere, and a cancelled meeting is immutable.
"""

import pytest

from meeting_orchestrator.models.meeting import (
    CalendarReference,
    LocationType,
    MeetingLocation,
    MeetingMeta,
    MeetingPayload,
    MeetingStatus,
    MeetingTime,
    Organizer,
    Participant,
)
from meeting_orchestrator.utils.exceptions import MeetingStateError


@pytest.fixture
def draft() -> MeetingPayload:
    return MeetingPayload(
        subject="Sync",
        company_id="acme",
        organizer=Organizer(name="Alice", email="alice@acme.com"),
        time=MeetingTime(start="2024-01-15T09:00:00Z", end="2024-01-15T09:30:00Z"),
        location=MeetingLocation(type=LocationType.PHONE, dial_in="+1 555 0100"),
        meta=MeetingMeta(created_at="2024-01-01T00:00:00+00:00", updated_at="2024-01-01T00:00:00+00:00"),
    )


class TestStatusTransitions:
    def test_new_payload_is_draft(self, draft):
        assert draft.status == MeetingStatus.DRAFT
        assert draft.meeting_id

    def test_forward_moves(self, draft):
        sent = draft.advance(MeetingStatus.SCHEDULED).advance(MeetingStatus.SENT)

        assert sent.status == MeetingStatus.SENT
        assert draft.status == MeetingStatus.DRAFT

    def test_regression_is_rejected(self, draft):
        sent = draft.advance(MeetingStatus.SENT)

        with pytest.raises(MeetingStateError, match="cannot move from sent back to scheduled"):
            sent.advance(MeetingStatus.SCHEDULED)

    @pytest.mark.parametrize("status", list(MeetingStatus)[:-1])
    def test_cancel_from_any_status(self, draft, status):
        payload = draft if status == MeetingStatus.DRAFT else draft.advance(status)

        assert payload.advance(MeetingStatus.CANCELLED).is_cancelled

    def test_cancelled_is_terminal(self, draft):
        """Should reject any change to a cancelled meeting."""
        cancelled = draft.advance(MeetingStatus.CANCELLED)

        with pytest.raises(MeetingStateError):
            cancelled.advance(MeetingStatus.CONFIRMED)
        with pytest.raises(MeetingStateError):
            cancelled.with_participants([])
        with pytest.raises(MeetingStateError):
            cancelled.with_calendar(CalendarReference(calendar_event_id="evt-1"))


class TestCopies:
    def test_with_participants_refreshes_updated_at(self, draft):
        updated = draft.with_participants([Participant(name="Bob", email="bob@acme.com")])

        assert len(updated.participants) == 1
        assert draft.participants == []
        assert updated.meta.updated_at != draft.meta.updated_at
        assert updated.meta.created_at == draft.meta.created_at

    def test_with_calendar_can_replace_location(self, draft):
        location = MeetingLocation(type=LocationType.VIDEO, join_url="https://meet/x")

        updated = draft.with_calendar(CalendarReference(calendar_event_id="evt-1"), location)

        assert updated.calendar.calendar_event_id == "evt-1"
        assert updated.location.join_url == "https://meet/x"

    def test_payload_is_frozen(self, draft):
        with pytest.raises(Exception):
            draft.subject = "Changed"
