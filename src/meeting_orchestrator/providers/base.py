"""Abstract base class for calendar/email/contacts providers."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.contact import Contact, NewContact
from ..models.event import EventRequest, ProviderEvent
from ..models.grant import Grant
from ..models.message import OutgoingMessage, SentMessage


class CalendarProvider(ABC):
    """Provider operations performed on behalf of one grant."""

    @abstractmethod
    def list_events(
        self,
        grant: Grant,
        start: int,
        end: int,
        calendar_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[ProviderEvent]:
        """
        List events in a time range.

        Args:
            grant: Grant whose calendar to read
            start: Range start (epoch seconds)
            end: Range end (epoch seconds)
            calendar_id: Calendar ID (None for primary)
            limit: Page size

        Returns:
            List of normalized events

        Raises:
            CalendarReadError: If reading events fails
        """

    @abstractmethod
    def get_event(
        self, grant: Grant, event_id: str, calendar_id: Optional[str] = None
    ) -> ProviderEvent:
        """
        Get a specific event by ID.

        Raises:
            CalendarReadError: If getting the event fails
        """

    @abstractmethod
    def create_event(
        self,
        grant: Grant,
        request: EventRequest,
        calendar_id: Optional[str] = None,
    ) -> ProviderEvent:
        """
        Create a new event.

        Raises:
            CalendarWriteError: If event creation fails
        """

    @abstractmethod
    def update_event(
        self,
        grant: Grant,
        event_id: str,
        updates: EventRequest,
        calendar_id: Optional[str] = None,
    ) -> ProviderEvent:
        """
        Update an existing event with the fields set on ``updates``.

        Raises:
            CalendarWriteError: If event update fails
        """

    @abstractmethod
    def delete_event(
        self,
        grant: Grant,
        event_id: str,
        calendar_id: Optional[str] = None,
    ) -> None:
        """
        Delete an event.

        Raises:
            CalendarWriteError: If event deletion fails
        """

    @abstractmethod
    def send_message(self, grant: Grant, message: OutgoingMessage) -> SentMessage:
        """
        Send an email from the grant's mailbox.

        Raises:
            EmailSendError: If sending fails
        """

    @abstractmethod
    def list_contacts(
        self,
        grant: Grant,
        email: Optional[str] = None,
        limit: int = 100,
    ) -> list[Contact]:
        """
        List contacts, optionally filtered by email address.

        Raises:
            ContactLookupError: If the query fails
        """

    @abstractmethod
    def create_contact(self, grant: Grant, contact: NewContact) -> Contact:
        """
        Create a contact in the grant's address book.

        Raises:
            ContactLookupError: If creation fails
        """
