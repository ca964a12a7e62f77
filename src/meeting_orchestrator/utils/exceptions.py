"""Custom exceptions for Meeting Orchestrator application."""

from typing import Optional


class OrchestratorError(Exception):
    """Base exception for meeting orchestration errors."""


class ConfigurationError(OrchestratorError):
    """Raised when a credential or setting required for a call is missing."""


class GrantNotFoundError(ConfigurationError):
    """Raised when a user has not connected a calendar/email account."""

    def __init__(self, company_id: str, email: str):
        self.company_id = company_id
        self.email = email
        super().__init__(
            f"User {email} has not connected their calendar. "
            f"Ask them to connect via OAuth in settings."
        )


class GrantLookupError(OrchestratorError):
    """Raised when the grant store itself cannot be queried."""


class ProviderError(OrchestratorError):
    """Raised when the upstream provider rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider_message: Optional[str] = None,
    ):
        self.status_code = status_code
        self.provider_message = provider_message
        super().__init__(message)


class CalendarReadError(ProviderError):
    """Raised when reading calendar events fails."""


class CalendarWriteError(ProviderError):
    """Raised when creating, updating or deleting an event fails."""


class EmailSendError(ProviderError):
    """Raised when sending an email fails."""


class ContactLookupError(ProviderError):
    """Raised when querying or creating contacts fails."""


class MeetingStateError(OrchestratorError):
    """Raised on an illegal meeting status transition."""
