"""Nylas v3 provider using the REST API directly."""

import logging
from typing import Any, Callable, Optional, TypeVar

import requests

from ..auth.credentials import NYLAS_API_KEY, CredentialService
from ..config import ProviderConfig
from ..models.contact import Contact, NewContact, normalize_contact
from ..models.event import EventRequest, ProviderEvent, normalize_event
from ..models.grant import Grant
from ..models.message import OutgoingMessage, SentMessage, normalize_message
from ..utils.exceptions import (
    CalendarReadError,
    CalendarWriteError,
    ContactLookupError,
    EmailSendError,
    ProviderError,
)
from ..utils.logging import mask_token
from .base import CalendarProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _provider_message(resp: requests.Response) -> Optional[str]:
    """Extract the provider's own error message from an error response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str):
            return error
        if body.get("message"):
            return body["message"]
    return None


class NylasProvider(CalendarProvider):
    """Calendar, email and contacts on behalf of Nylas grants."""

    def __init__(
        self,
        provider_config: ProviderConfig,
        credentials: CredentialService,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Nylas provider.

        Args:
            provider_config: Base URL, default calendar and timeouts
            credentials: Company-scoped API key lookup
            session: HTTP session (created if not given)
        """
        self.config = provider_config
        self.credentials = credentials
        self.base_url = provider_config.api_url.rstrip("/")
        self.session = session or requests.Session()

    def _headers(self, company_id: str) -> dict[str, str]:
        api_key = self.credentials.require_secret(company_id, NYLAS_API_KEY)
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        grant: Grant,
        path: str,
        action: str,
        error_cls: type[ProviderError],
        timeout: float,
        **kwargs: Any,
    ) -> dict[str, Any]:
        headers = self._headers(grant.company_id)
        url = f"{self.base_url}/v3/grants/{grant.grant_id}{path}"

        try:
            resp = self.session.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise error_cls(f"Failed to {action}: {e}") from e

        if not resp.ok:
            provider_message = _provider_message(resp)
            raise error_cls(
                f"Failed to {action}: {provider_message or resp.reason} "
                f"(HTTP {resp.status_code})",
                status_code=resp.status_code,
                provider_message=provider_message,
            )

        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError as e:
            raise error_cls(
                f"Failed to {action}: response body is not JSON",
                status_code=resp.status_code,
            ) from e
        if not isinstance(body, dict):
            raise error_cls(
                f"Failed to {action}: unexpected response body",
                status_code=resp.status_code,
            )
        return body

    @staticmethod
    def _normalize(
        normalizer: Callable[[dict[str, Any]], T],
        raw: Any,
        action: str,
        error_cls: type[ProviderError],
    ) -> T:
        try:
            return normalizer(raw or {})
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise error_cls(f"Failed to {action}: malformed provider object: {e}") from e

    def _calendar_params(self, calendar_id: Optional[str]) -> dict[str, str]:
        return {"calendar_id": calendar_id or self.config.calendar_id}

    def list_events(
        self,
        grant: Grant,
        start: int,
        end: int,
        calendar_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[ProviderEvent]:
        params: dict[str, Any] = {
            **self._calendar_params(calendar_id),
            "start": start,
            "end": end,
            "limit": limit,
        }
        events = []
        while True:
            data = self._request(
                "GET",
                grant,
                "/events",
                f"read events for grant {mask_token(grant.grant_id)}",
                CalendarReadError,
                self.config.read_timeout,
                params=params,
            )
            events.extend(
                self._normalize(normalize_event, raw, "read events", CalendarReadError)
                for raw in data.get("data") or []
            )

            cursor = data.get("next_cursor")
            if not cursor:
                break
            params = {**params, "page_token": cursor}

        logger.debug(f"Read {len(events)} events for grant {mask_token(grant.grant_id)}")
        return events

    def get_event(
        self, grant: Grant, event_id: str, calendar_id: Optional[str] = None
    ) -> ProviderEvent:
        data = self._request(
            "GET",
            grant,
            f"/events/{event_id}",
            f"get event {event_id}",
            CalendarReadError,
            self.config.read_timeout,
            params=self._calendar_params(calendar_id),
        )
        return self._normalize(
            normalize_event, data.get("data"), f"get event {event_id}", CalendarReadError
        )

    def create_event(
        self,
        grant: Grant,
        request: EventRequest,
        calendar_id: Optional[str] = None,
    ) -> ProviderEvent:
        data = self._request(
            "POST",
            grant,
            "/events",
            "create event",
            CalendarWriteError,
            self.config.write_timeout,
            params=self._calendar_params(calendar_id),
            json=request.to_provider_format(),
        )
        event = self._normalize(
            normalize_event, data.get("data"), "create event", CalendarWriteError
        )
        logger.info(f"Created event: {event.title} ({event.id})")
        return event

    def update_event(
        self,
        grant: Grant,
        event_id: str,
        updates: EventRequest,
        calendar_id: Optional[str] = None,
    ) -> ProviderEvent:
        data = self._request(
            "PUT",
            grant,
            f"/events/{event_id}",
            f"update event {event_id}",
            CalendarWriteError,
            self.config.write_timeout,
            params=self._calendar_params(calendar_id),
            json=updates.to_provider_format(),
        )
        logger.info(f"Updated event: {event_id}")
        return self._normalize(
            normalize_event, data.get("data"), f"update event {event_id}", CalendarWriteError
        )

    def delete_event(
        self,
        grant: Grant,
        event_id: str,
        calendar_id: Optional[str] = None,
    ) -> None:
        self._request(
            "DELETE",
            grant,
            f"/events/{event_id}",
            f"delete event {event_id}",
            CalendarWriteError,
            self.config.write_timeout,
            params=self._calendar_params(calendar_id),
        )
        logger.info(f"Deleted event: {event_id}")

    def send_message(self, grant: Grant, message: OutgoingMessage) -> SentMessage:
        data = self._request(
            "POST",
            grant,
            "/messages/send",
            "send email",
            EmailSendError,
            self.config.send_timeout,
            json=message.to_provider_format(),
        )
        sent = self._normalize(
            normalize_message, data.get("data"), "send email", EmailSendError
        )
        logger.info(f"Sent email '{message.subject}' to {len(message.to)} recipient(s)")
        return sent

    def list_contacts(
        self,
        grant: Grant,
        email: Optional[str] = None,
        limit: int = 100,
    ) -> list[Contact]:
        params: dict[str, Any] = {"limit": limit}
        if email:
            params["email"] = email
        data = self._request(
            "GET",
            grant,
            "/contacts",
            "list contacts",
            ContactLookupError,
            self.config.read_timeout,
            params=params,
        )
        return [
            self._normalize(normalize_contact, raw, "list contacts", ContactLookupError)
            for raw in data.get("data") or []
        ]

    def create_contact(self, grant: Grant, contact: NewContact) -> Contact:
        data = self._request(
            "POST",
            grant,
            "/contacts",
            "create contact",
            ContactLookupError,
            self.config.write_timeout,
            json=contact.to_provider_format(),
        )
        return self._normalize(
            normalize_contact, data.get("data"), "create contact", ContactLookupError
        )
