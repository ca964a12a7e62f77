"""Normalized provider event data model."""

from datetime import datetime, timedelta
from typing import Any, Optional

import pytz
from pydantic import BaseModel, Field


class EventParticipant(BaseModel):
    """Event participant as reported by the provider."""

    email: str
    name: Optional[str] = None
    status: Optional[str] = None  # noreply, yes, no, maybe


class ProviderEvent(BaseModel):
    """Calendar event normalized at the provider boundary."""

    id: str
    title: str = "(No Subject)"
    description: Optional[str] = None
    location: Optional[str] = None

    # Epoch seconds
    start_time: int
    end_time: int
    all_day: bool = False

    participants: list[EventParticipant] = Field(default_factory=list)
    status: Optional[str] = None
    conferencing_url: Optional[str] = None
    html_link: Optional[str] = None
    calendar_id: Optional[str] = None
    ical_uid: Optional[str] = None

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class Conferencing(BaseModel):
    """Conferencing request attached to a new event."""

    provider: str = "google_meet"
    autocreate: dict[str, Any] = Field(default_factory=dict)


class EventRequest(BaseModel):
    """Fields sent to the provider when creating or updating an event."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    timezone: Optional[str] = None
    participants: Optional[list[EventParticipant]] = None
    conferencing: Optional[Conferencing] = None
    recurrence: Optional[list[str]] = None

    def to_provider_format(self) -> dict[str, Any]:
        """Render the request as the provider's JSON body, omitting unset fields."""
        data: dict[str, Any] = {}

        if self.title is not None:
            data["title"] = self.title
        if self.description is not None:
            data["description"] = self.description
        if self.location:
            data["location"] = self.location

        if self.start_time is not None and self.end_time is not None:
            when: dict[str, Any] = {
                "start_time": self.start_time,
                "end_time": self.end_time,
            }
            if self.timezone:
                when["start_timezone"] = self.timezone
                when["end_timezone"] = self.timezone
            data["when"] = when

        if self.participants is not None:
            data["participants"] = [
                p.model_dump(exclude_none=True) for p in self.participants
            ]
        if self.conferencing is not None:
            data["conferencing"] = self.conferencing.model_dump()
        if self.recurrence:
            data["recurrence"] = self.recurrence

        return data


def _midnight(day: str, tz: pytz.BaseTzInfo, days_after: int = 0) -> int:
    local = tz.localize(datetime.strptime(day, "%Y-%m-%d") + timedelta(days=days_after))
    return int(local.timestamp())


def _when_bounds(when: dict[str, Any]) -> tuple[int, int, bool]:
    """
    Epoch bounds of a provider ``when`` object as ``(start, end, all_day)``.

    ``date`` covers one whole day and ``datespan`` runs through its end
    date; both start at local midnight in the event timezone (UTC if none).
    ``time`` is a point in time. Timespans carry explicit epochs.
    """
    kind = when.get("object")
    tz = pytz.timezone(when.get("timezone") or when.get("start_timezone") or "UTC")

    if kind == "date" or (kind is None and when.get("date")):
        return _midnight(when["date"], tz), _midnight(when["date"], tz, 1), True
    if kind == "datespan" or (kind is None and when.get("start_date")):
        end_date = when.get("end_date") or when["start_date"]
        return _midnight(when["start_date"], tz), _midnight(end_date, tz, 1), True
    if kind == "time" or (kind is None and when.get("time") is not None):
        point = int(when["time"])
        return point, point, False
    return int(when.get("start_time") or 0), int(when.get("end_time") or 0), False


def normalize_event(raw: dict[str, Any]) -> ProviderEvent:
    """
    Normalize a raw provider event into a ProviderEvent.

    All-day ``date``/``datespan`` events become half-open midnight-to-midnight
    intervals so they block availability like any other event.
    """
    when = raw.get("when") or {}
    start_time, end_time, all_day = _when_bounds(when)
    conferencing = raw.get("conferencing") or {}
    details = conferencing.get("details") or {}

    participants = [
        EventParticipant(
            email=p.get("email", ""),
            name=p.get("name"),
            status=p.get("status"),
        )
        for p in raw.get("participants") or []
        if p.get("email")
    ]

    return ProviderEvent(
        id=raw.get("id", ""),
        title=raw.get("title") or "(No Subject)",
        description=raw.get("description"),
        location=raw.get("location"),
        start_time=start_time,
        end_time=end_time,
        all_day=all_day,
        participants=participants,
        status=raw.get("status"),
        conferencing_url=details.get("url"),
        html_link=raw.get("html_link"),
        calendar_id=raw.get("calendar_id"),
        ical_uid=raw.get("ical_uid"),
        raw=raw,
    )
