"""Meeting orchestration engine: Contacts -> Calendar -> Email."""

import logging
from typing import Optional

from ..agents.calendar import CalendarAgent
from ..agents.contacts import ContactsAgent
from ..agents.email import EmailAgent
from ..agents.templates import MeetingChanges
from ..cache.ttl_cache import TTLCache
from ..grants.resolver import GrantResolver
from ..models.event import EventRequest
from ..models.meeting import (
    MeetingLocation,
    MeetingMeta,
    MeetingPayload,
    MeetingStatus,
    MeetingTime,
    Participant,
    utc_now_iso,
)
from ..scheduling.recurrence import generate_occurrences
from ..utils.date_utils import calculate_duration, to_epoch
from ..utils.exceptions import MeetingStateError, OrchestratorError
from .result import Err, Ok, Result
from .schemas import (
    AvailabilityRequest,
    AvailabilityResult,
    RecurringMeetingRequest,
    ScheduleMeetingRequest,
)
from .stages import CreateEventStage, EnrichContactsStage, PipelineStage, SendInviteStage

logger = logging.getLogger(__name__)

IDEMPOTENCY_OBJECT_TYPE = "meeting"
IDEMPOTENCY_TTL_HOURS = 24


class MeetingOrchestrator:
    """Runs the scheduling pipeline and the follow-up operations on a meeting."""

    def __init__(
        self,
        resolver: GrantResolver,
        contacts: ContactsAgent,
        calendar: CalendarAgent,
        email: EmailAgent,
        registry: Optional[TTLCache] = None,
        source: str = "ai_assistant",
        default_language: str = "en",
    ):
        """
        Initialize orchestrator.

        Args:
            resolver: Grant resolver, used for the organizer fail-fast check
            contacts: Contacts agent (enrichment stage)
            calendar: Calendar agent (event stage, availability)
            email: Email agent (invite stage, notifications)
            registry: Cache remembering meetings by idempotency key
            source: ``meta.source`` of new meetings
            default_language: ``meta.language`` when the request has none
        """
        self.resolver = resolver
        self.contacts = contacts
        self.calendar = calendar
        self.email = email
        self.registry = registry or TTLCache(default_ttl_hours=IDEMPOTENCY_TTL_HOURS)
        self.source = source
        self.default_language = default_language

        self.invite_stage = SendInviteStage(email)
        self.stages: list[PipelineStage] = [
            EnrichContactsStage(contacts),
            CreateEventStage(calendar),
            self.invite_stage,
        ]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run_pipeline(
        self, payload: MeetingPayload, stages: list[PipelineStage]
    ) -> MeetingPayload:
        total = len(stages)
        for step, stage in enumerate(stages, 1):
            logger.info(f"Step {step}/{total}: {stage.name}")
            try:
                payload = stage.run(payload)
            except Exception as e:
                if stage.required:
                    logger.error(f"Stage {stage.name} failed, aborting: {e}")
                    raise
                logger.warning(f"Stage {stage.name} failed, continuing: {e}")
                continue
            self._remember(payload)
        return payload

    def _remember(self, payload: MeetingPayload) -> None:
        key = payload.meta.idempotency_key
        if key and payload.calendar is not None:
            self.registry.upsert(
                payload.company_id, IDEMPOTENCY_OBJECT_TYPE, key, payload, IDEMPOTENCY_TTL_HOURS
            )

    def _recall(self, company_id: str, key: Optional[str]) -> Optional[MeetingPayload]:
        if not key:
            return None
        return self.registry.get(company_id, IDEMPOTENCY_OBJECT_TYPE, key)

    def _draft(self, request: ScheduleMeetingRequest) -> MeetingPayload:
        time = request.time
        if time.duration_minutes is None:
            time = time.model_copy(
                update={"duration_minutes": calculate_duration(time.start, time.end)}
            )

        now = utc_now_iso()
        return MeetingPayload(
            subject=request.subject,
            description=request.description,
            company_id=request.company_id,
            organizer=request.organizer.model_copy(
                update={"email": request.organizer.email.strip().lower()}
            ),
            participants=request.participants,
            time=time,
            location=request.location,
            meta=MeetingMeta(
                source=self.source,
                language=request.language or self.default_language,
                created_at=now,
                updated_at=now,
                idempotency_key=request.idempotency_key,
            ),
        )

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_meeting(self, request: ScheduleMeetingRequest) -> MeetingPayload:
        """
        Schedule a meeting: enrich contacts, create the event, send invites.

        Contact enrichment and the invite are best-effort. When the invite
        fails the returned payload is ``scheduled`` with no email reference.

        Args:
            request: Meeting details

        Returns:
            The scheduled meeting

        Raises:
            GrantNotFoundError: If the organizer has not connected a calendar
            CalendarWriteError: If the event could not be created
        """
        remembered = self._recall(request.company_id, request.idempotency_key)
        if remembered is not None:
            logger.info(
                f"Meeting for idempotency key {request.idempotency_key} already "
                f"exists: {remembered.meeting_id}"
            )
            if remembered.email is None and remembered.status == MeetingStatus.SCHEDULED:
                return self._run_pipeline(remembered, [self.invite_stage])
            return remembered

        self.resolver.find_user_grant_or_raise(request.company_id, request.organizer.email)

        payload = self._draft(request)
        logger.info(
            f"Scheduling meeting {payload.meeting_id}: \"{payload.subject}\" "
            f"with {len(payload.participants)} participants"
        )

        payload = self._run_pipeline(payload, self.stages)
        logger.info(f"Meeting {payload.meeting_id} is {payload.status.value}")
        return payload

    def find_availability_and_schedule(
        self, request: AvailabilityRequest
    ) -> AvailabilityResult:
        """
        Find the first slot where organizer and participants are all free
        and schedule the meeting there.

        The search window runs from the first preference's start to the
        last preference's end.

        Returns:
            AvailabilityResult; ``scheduled_meeting`` is None when no common
            slot exists
        """
        self.resolver.find_user_grant_or_raise(request.company_id, request.organizer.email)

        window_start = request.date_preferences[0].start
        window_end = request.date_preferences[-1].end
        emails = [request.organizer.email] + list(request.participant_emails)

        slots = self.calendar.check_availability_for_users(
            request.company_id,
            emails,
            request.duration_minutes,
            window_start,
            window_end,
            request.timezone,
        )
        if not slots:
            logger.info("No common availability, nothing scheduled")
            return AvailabilityResult()

        slot = slots[0]
        logger.info(f"Selected slot {slot.start} - {slot.end}")

        participants = [
            Participant(name=email.split("@")[0], email=email.strip().lower())
            for email in request.participant_emails
        ]
        meeting = self.schedule_meeting(
            ScheduleMeetingRequest(
                company_id=request.company_id,
                organizer=request.organizer,
                participants=participants,
                subject=request.subject,
                description=request.description,
                time=MeetingTime(
                    start=slot.start,
                    end=slot.end,
                    timezone=request.timezone,
                    duration_minutes=request.duration_minutes,
                ),
                location=request.location,
                language=request.language,
                idempotency_key=request.idempotency_key,
            )
        )
        return AvailabilityResult(available_slots=slots, scheduled_meeting=meeting)

    def schedule_recurring_meeting(
        self, request: RecurringMeetingRequest
    ) -> list[MeetingPayload]:
        """
        Schedule each occurrence as an independent meeting.

        An occurrence that fails is logged and skipped.

        Raises:
            GrantNotFoundError: If the organizer has not connected a calendar
        """
        self.resolver.find_user_grant_or_raise(request.company_id, request.organizer.email)

        occurrences = generate_occurrences(
            request.start_date,
            request.start_time,
            request.duration_minutes,
            request.frequency,
            request.count,
            request.timezone,
        )
        logger.info(
            f"Scheduling {len(occurrences)} {request.frequency.value} occurrences "
            f"of \"{request.subject}\""
        )

        meetings = []
        for occurrence in occurrences:
            try:
                meetings.append(
                    self.schedule_meeting(
                        ScheduleMeetingRequest(
                            company_id=request.company_id,
                            organizer=request.organizer,
                            participants=request.participants,
                            subject=f"{request.subject} ({occurrence.index}/{request.count})",
                            description=request.description,
                            time=MeetingTime(
                                start=occurrence.start,
                                end=occurrence.end,
                                timezone=request.timezone,
                                duration_minutes=request.duration_minutes,
                            ),
                            location=request.location,
                        )
                    )
                )
            except OrchestratorError as e:
                logger.error(f"Failed to schedule occurrence {occurrence.index}: {e}")

        logger.info(f"Scheduled {len(meetings)}/{len(occurrences)} occurrences")
        return meetings

    # ------------------------------------------------------------------
    # Changes to a scheduled meeting
    # ------------------------------------------------------------------

    def reschedule_meeting(
        self,
        payload: MeetingPayload,
        new_start: str,
        new_end: str,
        new_location: Optional[MeetingLocation] = None,
    ) -> MeetingPayload:
        """
        Move a meeting and notify participants.

        The event update is required; the update email is best-effort.

        Raises:
            MeetingStateError: If the meeting is cancelled or has no event
            CalendarWriteError: If the event could not be updated
        """
        if payload.is_cancelled:
            raise MeetingStateError(f"Meeting {payload.meeting_id} is cancelled")
        if payload.calendar is None or not payload.calendar.calendar_event_id:
            raise MeetingStateError(
                f"Meeting {payload.meeting_id} has no calendar event to reschedule"
            )

        location = new_location or payload.location
        event = self.calendar.update_event_for_user(
            payload.company_id,
            payload.organizer.email,
            payload.calendar.calendar_event_id,
            EventRequest(
                start_time=to_epoch(new_start),
                end_time=to_epoch(new_end),
                timezone=payload.time.timezone,
                location=location.physical_address or location.join_url or location.dial_in,
            ),
        )
        if event.conferencing_url and not location.join_url:
            location = location.model_copy(update={"join_url": event.conferencing_url})

        updated = payload.with_time(
            MeetingTime(
                start=new_start,
                end=new_end,
                timezone=payload.time.timezone,
                duration_minutes=calculate_duration(new_start, new_end),
            )
        ).with_location(location)
        logger.info(f"Meeting {payload.meeting_id} moved to {new_start}")

        changes = MeetingChanges(
            old_start=payload.time.start,
            old_end=payload.time.end,
            old_location=payload.location if new_location is not None else None,
        )
        try:
            return self.email.send_meeting_update(updated, changes)
        except Exception as e:
            logger.warning(f"Update email for meeting {payload.meeting_id} failed: {e}")
            return updated

    def cancel_meeting(
        self, payload: MeetingPayload, reason: Optional[str] = None
    ) -> MeetingPayload:
        """
        Delete the event and notify participants.

        The cancellation email is best-effort; the returned payload is
        cancelled either way.

        Raises:
            MeetingStateError: If the meeting is already cancelled
            CalendarWriteError: If the event could not be deleted
        """
        if payload.is_cancelled:
            raise MeetingStateError(f"Meeting {payload.meeting_id} is already cancelled")

        if payload.calendar is not None and payload.calendar.calendar_event_id:
            self.calendar.delete_event_for_user(
                payload.company_id,
                payload.organizer.email,
                payload.calendar.calendar_event_id,
            )

        try:
            cancelled = self.email.send_meeting_cancellation(payload, reason)
        except Exception as e:
            logger.warning(f"Cancellation email for meeting {payload.meeting_id} failed: {e}")
            cancelled = payload.advance(MeetingStatus.CANCELLED)

        logger.info(f"Meeting {payload.meeting_id} cancelled")
        return cancelled

    # ------------------------------------------------------------------
    # Non-raising variants for request handlers
    # ------------------------------------------------------------------

    def schedule_meeting_safe(self, request: ScheduleMeetingRequest) -> Result:
        try:
            return Ok(self.schedule_meeting(request))
        except Exception as e:
            logger.error(f"Meeting scheduling failed: {e}")
            return Err(e)

    def find_availability_and_schedule_safe(self, request: AvailabilityRequest) -> Result:
        try:
            return Ok(self.find_availability_and_schedule(request))
        except Exception as e:
            logger.error(f"Availability scheduling failed: {e}")
            return Err(e)

    def reschedule_meeting_safe(
        self,
        payload: MeetingPayload,
        new_start: str,
        new_end: str,
        new_location: Optional[MeetingLocation] = None,
    ) -> Result:
        try:
            return Ok(self.reschedule_meeting(payload, new_start, new_end, new_location))
        except Exception as e:
            logger.error(f"Rescheduling failed: {e}")
            return Err(e)

    def cancel_meeting_safe(
        self, payload: MeetingPayload, reason: Optional[str] = None
    ) -> Result:
        try:
            return Ok(self.cancel_meeting(payload, reason))
        except Exception as e:
            logger.error(f"Cancellation failed: {e}")
            return Err(e)
