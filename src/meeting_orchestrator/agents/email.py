"""Email agent: meeting notifications sent on behalf of the organizer."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..grants.resolver import GrantResolver
from ..models.meeting import EmailReference, MeetingPayload, MeetingStatus, utc_now_iso
from ..models.message import OutgoingMessage, Recipient, SentMessage
from ..providers.base import CalendarProvider
from ..utils.concurrency import DEFAULT_MAX_WORKERS, raise_first, settle_all
from ..utils.exceptions import ConfigurationError, MeetingStateError
from .templates import (
    MeetingChanges,
    render_cancellation_email,
    render_invite_email,
    render_update_email,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkSendResult:
    """Result of a bulk send. Partial success is a valid outcome."""

    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class EmailAgent:
    """Invitation, update and cancellation emails."""

    def __init__(
        self,
        provider: CalendarProvider,
        resolver: GrantResolver,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.provider = provider
        self.resolver = resolver
        self.max_workers = max_workers

    def _send_to_participants(
        self, payload: MeetingPayload, subject: str, body: str
    ) -> EmailReference:
        if payload.is_cancelled:
            raise MeetingStateError(f"Meeting {payload.meeting_id} is cancelled")
        grant = self.resolver.find_user_grant_or_raise(
            payload.company_id, payload.organizer.email
        )
        message = OutgoingMessage(
            to=[Recipient(name=p.name, email=p.email) for p in payload.participants],
            subject=subject,
            body=body,
        )
        sent = self.provider.send_message(grant, message)
        logger.info(f"Email sent: Message ID {sent.id}, Thread ID {sent.thread_id}")
        return EmailReference(
            message_id=sent.id, thread_id=sent.thread_id, sent_at=utc_now_iso()
        )

    def send_meeting_invite(self, payload: MeetingPayload) -> MeetingPayload:
        """
        Send the invitation and mark the meeting as sent.

        Raises:
            GrantNotFoundError: If the organizer is not connected
            EmailSendError: If the provider rejects the message
        """
        logger.info(
            f"Sending meeting invite from {payload.organizer.email} "
            f"to {len(payload.participants)} participants"
        )
        reference = self._send_to_participants(
            payload, payload.subject, render_invite_email(payload)
        )
        return payload.with_email(reference).advance(MeetingStatus.SENT)

    def send_meeting_update(
        self, payload: MeetingPayload, changes: MeetingChanges
    ) -> MeetingPayload:
        """Send an update notice. The meeting status is left unchanged."""
        logger.info(f"Sending meeting update from {payload.organizer.email}")
        reference = self._send_to_participants(
            payload, f"Updated: {payload.subject}", render_update_email(payload, changes)
        )
        return payload.with_email(reference)

    def send_meeting_cancellation(
        self, payload: MeetingPayload, reason: Optional[str] = None
    ) -> MeetingPayload:
        """Send a cancellation notice and mark the meeting cancelled."""
        logger.info(f"Sending meeting cancellation from {payload.organizer.email}")
        reference = self._send_to_participants(
            payload,
            f"Cancelled: {payload.subject}",
            render_cancellation_email(payload, reason),
        )
        return payload.with_email(reference).advance(MeetingStatus.CANCELLED)

    def send_bulk_invites(
        self,
        company_id: str,
        organizer_email: str,
        recipients: list[Recipient],
        subject: str,
        body: str,
    ) -> BulkSendResult:
        """
        Send one message per recipient, concurrently.

        A failed send is counted and reported; it does not stop the others.

        Raises:
            GrantNotFoundError: If the organizer is not connected
            ConfigurationError: If the company has no provider API key
        """
        grant = self.resolver.find_user_grant_or_raise(company_id, organizer_email)
        logger.info(f"Sending bulk invites to {len(recipients)} recipients")

        def send(recipient: Recipient) -> SentMessage:
            return self.provider.send_message(
                grant, OutgoingMessage(to=[recipient], subject=subject, body=body)
            )

        outcomes = settle_all(send, recipients, self.max_workers)
        raise_first(outcomes, (ConfigurationError,))

        result = BulkSendResult()
        for recipient, outcome in zip(recipients, outcomes):
            if outcome.ok:
                result.sent += 1
            else:
                result.failed += 1
                result.errors.append(f"{recipient.email}: {outcome.message}")

        logger.info(f"Bulk send complete: {result.sent} sent, {result.failed} failed")
        return result
