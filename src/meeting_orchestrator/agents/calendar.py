"""Calendar agent: event management and group availability."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

import pytz

from ..cache.ttl_cache import TTLCache
from ..grants.resolver import GrantResolver
from ..models.event import Conferencing, EventParticipant, EventRequest, ProviderEvent
from ..models.grant import Grant
from ..models.meeting import CalendarReference, LocationType, MeetingPayload
from ..models.slot import BusyInterval, ParticipantBusy, TimeSlot
from ..providers.base import CalendarProvider
from ..scheduling.availability import SLOT_INCREMENT_SECONDS, calculate_group_availability
from ..utils.concurrency import DEFAULT_MAX_WORKERS, raise_first, settle_all
from ..utils.date_utils import epoch_to_iso, to_epoch
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EVENT_OBJECT_TYPE = "calendar"
EVENT_TTL_HOURS = 24
WORKDAY_MINUTES = 8 * 60


@dataclass
class EmployeeSchedule:
    """One employee's events for a day."""

    email: str
    name: str
    events: list[ProviderEvent] = field(default_factory=list)
    utilization: int = 0


@dataclass
class ScheduleSnapshot:
    """Company schedule for a single day."""

    date: str
    employees: list[EmployeeSchedule] = field(default_factory=list)
    company_utilization: int = 0


class CalendarAgent:
    """Event CRUD on behalf of grants, plus multi-user availability."""

    def __init__(
        self,
        provider: CalendarProvider,
        resolver: GrantResolver,
        cache: TTLCache,
        ttl_hours: float = EVENT_TTL_HOURS,
        increment_seconds: int = SLOT_INCREMENT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        calendar_id: Optional[str] = None,
    ):
        """
        Initialize calendar agent.

        Args:
            provider: Calendar provider
            resolver: Grant resolver for organizer/participant lookups
            cache: Event cache, kept in step with writes
            ttl_hours: TTL of cached events
            increment_seconds: Grid step for candidate slots
            max_workers: Fan-out bound for per-participant queries
            calendar_id: Calendar to write to (None for the provider default)
        """
        self.provider = provider
        self.resolver = resolver
        self.cache = cache
        self.ttl_hours = ttl_hours
        self.increment_seconds = increment_seconds
        self.max_workers = max_workers
        self.calendar_id = calendar_id

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def create_event_for_meeting(self, payload: MeetingPayload) -> MeetingPayload:
        """
        Create the meeting's event in the organizer's calendar.

        Returns:
            Copy of the payload with the calendar reference populated and,
            for video meetings, the provider's join URL

        Raises:
            GrantNotFoundError: If the organizer is not connected
            CalendarWriteError: If the provider rejects the event
        """
        grant = self.resolver.find_user_grant_or_raise(
            payload.company_id, payload.organizer.email
        )
        logger.info(f"Creating event for {payload.organizer.email}: \"{payload.subject}\"")

        location = payload.location
        request = EventRequest(
            title=payload.subject,
            description=payload.description,
            location=location.physical_address or location.join_url or location.dial_in,
            start_time=to_epoch(payload.time.start),
            end_time=to_epoch(payload.time.end),
            timezone=payload.time.timezone,
            participants=[
                EventParticipant(name=p.name, email=p.email) for p in payload.participants
            ],
            conferencing=(
                Conferencing(provider=location.provider or "google_meet")
                if location.type == LocationType.VIDEO
                else None
            ),
        )

        event = self.provider.create_event(grant, request, self.calendar_id)
        self._cache_event(grant, event)
        logger.info(f"Event created: {event.id} (Join URL: {event.conferencing_url or 'N/A'})")

        return payload.with_calendar(
            CalendarReference(
                calendar_event_id=event.id,
                calendar_html_link=event.html_link,
                calendar_id=event.calendar_id,
                ical_uid=event.ical_uid,
            ),
            location=location.model_copy(
                update={"join_url": event.conferencing_url or location.join_url}
            ),
        )

    def get_event_for_user(
        self, company_id: str, organizer_email: str, event_id: str
    ) -> ProviderEvent:
        """Cache-first read of one event."""
        grant = self.resolver.find_user_grant_or_raise(company_id, organizer_email)
        cached = self.cache.get(grant.grant_id, EVENT_OBJECT_TYPE, event_id)
        if cached is not None:
            return cached

        event = self.provider.get_event(grant, event_id, self.calendar_id)
        self._cache_event(grant, event)
        return event

    def update_event_for_user(
        self,
        company_id: str,
        organizer_email: str,
        event_id: str,
        updates: EventRequest,
    ) -> ProviderEvent:
        """Update an event and refresh its cache entry."""
        grant = self.resolver.find_user_grant_or_raise(company_id, organizer_email)
        logger.info(f"Updating event {event_id} for {organizer_email}")

        event = self.provider.update_event(grant, event_id, updates, self.calendar_id)
        self._cache_event(grant, event, event_id)
        return event

    def delete_event_for_user(
        self, company_id: str, organizer_email: str, event_id: str
    ) -> None:
        """Delete an event and drop its cache entry."""
        grant = self.resolver.find_user_grant_or_raise(company_id, organizer_email)
        logger.info(f"Deleting event {event_id} for {organizer_email}")

        self.provider.delete_event(grant, event_id, self.calendar_id)
        self.cache.delete(grant.grant_id, EVENT_OBJECT_TYPE, event_id)

    def _cache_event(
        self, grant: Grant, event: ProviderEvent, event_id: Optional[str] = None
    ) -> None:
        key = event.id or event_id
        if key:
            self.cache.upsert(grant.grant_id, EVENT_OBJECT_TYPE, key, event, self.ttl_hours)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def _busy_intervals(self, grant: Grant, start: int, end: int) -> list[BusyInterval]:
        events = self.provider.list_events(grant, start, end, self.calendar_id)
        return [
            BusyInterval(start=e.start_time, end=e.end_time)
            for e in events
            if e.status != "cancelled"
        ]

    def fetch_busy_intervals(
        self, company_id: str, emails: list[str], start: int, end: int
    ) -> list[ParticipantBusy]:
        """
        Busy intervals per participant, fetched concurrently.

        A participant without a grant, or whose fetch fails, gets an empty
        list. A missing provider credential is raised instead, since it
        would make every participant look free.
        """

        def fetch(email: str) -> list[BusyInterval]:
            grant = self.resolver.find_user_grant(company_id, email)
            if grant is None:
                logger.warning(f"{email} has no connected calendar, treating as free")
                return []
            return self._busy_intervals(grant, start, end)

        outcomes = settle_all(fetch, emails, self.max_workers)
        raise_first(outcomes, (ConfigurationError,))

        result = []
        for email, outcome in zip(emails, outcomes):
            if outcome.ok:
                result.append(ParticipantBusy(email=email, intervals=outcome.value))
            else:
                logger.error(f"Failed to fetch events for {email}: {outcome.message}")
                result.append(ParticipantBusy(email=email))
        return result

    def check_availability_for_users(
        self,
        company_id: str,
        user_emails: list[str],
        duration_minutes: int,
        start_time: str,
        end_time: str,
        timezone: Optional[str] = None,
    ) -> list[TimeSlot]:
        """
        Slots in ``[start_time, end_time)`` where every user is free.

        Args:
            company_id: Owning company
            user_emails: Participants (duplicates are ignored)
            duration_minutes: Required meeting length
            start_time: ISO 8601 window start
            end_time: ISO 8601 window end
            timezone: Requester's timezone, for logging only; slots are UTC

        Returns:
            Chronological list of slots; empty if there is no common slot
        """
        emails = list(dict.fromkeys(e.strip().lower() for e in user_emails))
        logger.info(
            f"Checking availability for {len(emails)} users "
            f"({duration_minutes}min, {timezone or 'UTC'})"
        )

        start = to_epoch(start_time)
        end = to_epoch(end_time)
        busy = self.fetch_busy_intervals(company_id, emails, start, end)

        slots = calculate_group_availability(
            busy, start, end, duration_minutes * 60, self.increment_seconds
        )
        logger.info(f"Found {len(slots)} slots where all participants are available")
        return slots

    def get_company_wide_availability(
        self, company_id: str, start: int, end: int
    ) -> dict[str, list[ProviderEvent]]:
        """Events of every connected employee in a range (failed fetches are empty)."""
        grants = self.resolver.list_company_grants(company_id)
        outcomes = settle_all(
            lambda g: self.provider.list_events(g, start, end, self.calendar_id),
            grants,
            self.max_workers,
        )
        raise_first(outcomes, (ConfigurationError,))

        result = {}
        for grant, outcome in zip(grants, outcomes):
            if not outcome.ok:
                logger.error(f"Failed to fetch events for {grant.email}: {outcome.message}")
            result[grant.email] = outcome.value if outcome.ok else []
        return result

    def get_company_schedule_snapshot(
        self, company_id: str, date: str, tz_name: str = "UTC"
    ) -> ScheduleSnapshot:
        """
        Per-employee events and utilization for one day.

        Utilization is busy minutes within the day over an 8-hour workday, as
        a percentage capped at 100. Events are clipped to the day before summing.
        """
        tz = pytz.timezone(tz_name)
        day = datetime.strptime(date, "%Y-%m-%d")
        start = int(tz.localize(day).timestamp())
        day_end = int(tz.localize(day + timedelta(days=1)).timestamp())

        events_by_email = self.get_company_wide_availability(company_id, start, day_end - 1)

        employees = []
        for email, events in events_by_email.items():
            busy_minutes = sum(
                max(0, min(e.end_time, day_end) - max(e.start_time, start)) / 60 for e in events
            )
            employees.append(
                EmployeeSchedule(
                    email=email,
                    name=email.split("@")[0],
                    events=events,
                    utilization=min(100, round(busy_minutes / WORKDAY_MINUTES * 100)),
                )
            )

        company_utilization = (
            round(sum(e.utilization for e in employees) / len(employees)) if employees else 0
        )
        logger.info(
            f"Schedule snapshot for {date}: {len(employees)} employees, "
            f"{company_utilization}% utilization"
        )
        return ScheduleSnapshot(
            date=date, employees=employees, company_utilization=company_utilization
        )


def describe_event_time(event: ProviderEvent) -> str:
    return f"{epoch_to_iso(event.start_time)} - {epoch_to_iso(event.end_time)}"
