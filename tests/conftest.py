"""Shared test fixtures for Meeting Orchestrator tests.

This module provides:
- FakeProvider, an in-memory CalendarProvider with injectable failures
- A company with three connected users (alice, bob, carol)
- Agents and an orchestrator wired to the fake provider

Usage:
    def test_something(orchestrator, fake_provider):
        fake_provider.fail("send_message", EmailSendError("boom"))
        ...
"""

import itertools
import threading
from collections import Counter, defaultdict
from typing import Optional

import pytest

from meeting_orchestrator.agents.calendar import CalendarAgent
from meeting_orchestrator.agents.contacts import ContactsAgent
from meeting_orchestrator.agents.email import EmailAgent
from meeting_orchestrator.cache.ttl_cache import TTLCache
from meeting_orchestrator.grants.resolver import GrantResolver
from meeting_orchestrator.grants.store import InMemoryGrantStore
from meeting_orchestrator.models.contact import Contact, ContactEmail, NewContact
from meeting_orchestrator.models.event import EventRequest, ProviderEvent
from meeting_orchestrator.models.grant import Grant
from meeting_orchestrator.models.meeting import (
    LocationType,
    MeetingLocation,
    MeetingTime,
    Organizer,
    Participant,
)
from meeting_orchestrator.models.message import OutgoingMessage, SentMessage
from meeting_orchestrator.orchestrator.engine import MeetingOrchestrator
from meeting_orchestrator.orchestrator.schemas import ScheduleMeetingRequest
from meeting_orchestrator.providers.base import CalendarProvider

COMPANY_ID = "acme"
JOIN_URL = "https://meet.google.com/abc-defg-hij"


# ─────────────────────────────────────────────────────────────────────────────
# Fake provider
# ─────────────────────────────────────────────────────────────────────────────


class FakeProvider(CalendarProvider):
    """In-memory provider recording every call."""

    def __init__(self):
        self.events: dict[str, list[ProviderEvent]] = {}
        self.contacts: dict[str, list[Contact]] = {}
        self.created: list[tuple[str, EventRequest]] = []
        self.updated: list[tuple[str, str, EventRequest]] = []
        self.deleted: list[tuple[str, str]] = []
        self.sent: list[tuple[str, OutgoingMessage]] = []
        self.calls: Counter = Counter()
        self._failures: dict[tuple[str, Optional[str]], Exception] = {}
        self._ids: defaultdict[str, itertools.count] = defaultdict(lambda: itertools.count(1))
        self._lock = threading.Lock()

    def fail(self, operation: str, error: Exception, grant_id: Optional[str] = None) -> None:
        """Make ``operation`` raise ``error`` (for one grant, or for all)."""
        self._failures[(operation, grant_id)] = error

    def recover(self) -> None:
        self._failures.clear()

    def _enter(self, operation: str, grant: Grant) -> int:
        with self._lock:
            self.calls[operation] += 1
            error = self._failures.get((operation, grant.grant_id)) or self._failures.get(
                (operation, None)
            )
            if error is not None:
                raise error
            return next(self._ids[operation])

    def list_events(self, grant, start, end, calendar_id=None, limit=100):
        self._enter("list_events", grant)
        return [
            e
            for e in self.events.get(grant.grant_id, [])
            if e.start_time < end and e.end_time > start
        ]

    def get_event(self, grant, event_id, calendar_id=None):
        self._enter("get_event", grant)
        for event in self.events.get(grant.grant_id, []):
            if event.id == event_id:
                return event
        return ProviderEvent(id=event_id, start_time=0, end_time=0)

    def create_event(self, grant, request, calendar_id=None):
        n = self._enter("create_event", grant)
        self.created.append((grant.grant_id, request))
        return ProviderEvent(
            id=f"evt-{n}",
            title=request.title or "",
            start_time=request.start_time or 0,
            end_time=request.end_time or 0,
            conferencing_url=JOIN_URL if request.conferencing else None,
            html_link=f"https://calendar.example.com/evt-{n}",
            calendar_id=calendar_id or "primary",
        )

    def update_event(self, grant, event_id, updates, calendar_id=None):
        self._enter("update_event", grant)
        self.updated.append((grant.grant_id, event_id, updates))
        return ProviderEvent(
            id=event_id,
            start_time=updates.start_time or 0,
            end_time=updates.end_time or 0,
        )

    def delete_event(self, grant, event_id, calendar_id=None):
        self._enter("delete_event", grant)
        self.deleted.append((grant.grant_id, event_id))

    def send_message(self, grant, message):
        n = self._enter("send_message", grant)
        self.sent.append((grant.grant_id, message))
        return SentMessage(id=f"msg-{n}", thread_id=f"thread-{n}")

    def list_contacts(self, grant, email=None, limit=100):
        self._enter("list_contacts", grant)
        contacts = self.contacts.get(grant.grant_id, [])
        if email:
            contacts = [c for c in contacts if c.has_email(email)]
        return contacts[:limit]

    def create_contact(self, grant, contact: NewContact):
        n = self._enter("create_contact", grant)
        created = Contact(
            id=f"contact-{n}",
            grant_id=grant.grant_id,
            given_name=contact.given_name,
            surname=contact.surname,
            emails=[ContactEmail(email=contact.email, type="work")],
            company_name=contact.company_name,
        )
        self.contacts.setdefault(grant.grant_id, []).append(created)
        return created


# ─────────────────────────────────────────────────────────────────────────────
# Grants
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def company_id() -> str:
    return COMPANY_ID


@pytest.fixture
def grants() -> list[Grant]:
    """Connected users of the test company. dave@acme.com is not connected."""
    return [
        Grant(company_id=COMPANY_ID, user_id="u-alice", grant_id="grant-alice", email="alice@acme.com"),
        Grant(company_id=COMPANY_ID, user_id="u-bob", grant_id="grant-bob", email="bob@acme.com"),
        Grant(company_id=COMPANY_ID, user_id="u-carol", grant_id="grant-carol", email="carol@acme.com"),
    ]


@pytest.fixture
def grant_store(grants) -> InMemoryGrantStore:
    return InMemoryGrantStore(grants)


@pytest.fixture
def resolver(grant_store) -> GrantResolver:
    return GrantResolver(grant_store)


# ─────────────────────────────────────────────────────────────────────────────
# Agents
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def contacts_agent(fake_provider, resolver) -> ContactsAgent:
    return ContactsAgent(fake_provider, resolver, TTLCache(default_ttl_hours=168))


@pytest.fixture
def calendar_agent(fake_provider, resolver) -> CalendarAgent:
    return CalendarAgent(fake_provider, resolver, TTLCache(default_ttl_hours=24))


@pytest.fixture
def email_agent(fake_provider, resolver) -> EmailAgent:
    return EmailAgent(fake_provider, resolver)


@pytest.fixture
def orchestrator(resolver, contacts_agent, calendar_agent, email_agent) -> MeetingOrchestrator:
    return MeetingOrchestrator(resolver, contacts_agent, calendar_agent, email_agent)


# ─────────────────────────────────────────────────────────────────────────────
# Meeting data
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def organizer() -> Organizer:
    return Organizer(name="Alice Admin", email="alice@acme.com")


@pytest.fixture
def video_location() -> MeetingLocation:
    return MeetingLocation(type=LocationType.VIDEO, provider="google_meet")


@pytest.fixture
def schedule_request(organizer, video_location) -> ScheduleMeetingRequest:
    """A 30-minute video meeting with one internal participant."""
    return ScheduleMeetingRequest(
        company_id=COMPANY_ID,
        organizer=organizer,
        participants=[Participant(name="Bob", email="bob@acme.com")],
        subject="Quarterly planning",
        description="Review Q3 targets",
        time=MeetingTime(start="2024-01-15T14:00:00Z", end="2024-01-15T14:30:00Z"),
        location=video_location,
    )
