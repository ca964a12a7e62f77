"""Availability data models."""

from pydantic import BaseModel, Field


class BusyInterval(BaseModel):
    """Half-open busy interval ``[start, end)`` in epoch seconds."""

    start: int
    end: int

    model_config = {"frozen": True}


class ParticipantBusy(BaseModel):
    """A participant and their busy intervals within a search window."""

    email: str
    intervals: list[BusyInterval] = Field(default_factory=list)


class TimeSlot(BaseModel):
    """Candidate meeting slot. Computed per request, never persisted."""

    start: str  # ISO 8601
    end: str  # ISO 8601
    available_participants: list[str] = Field(default_factory=list)
    all_available: bool = True


class AvailabilitySlot(BaseModel):
    """Grid slot with a free/busy verdict per participant."""

    start: str
    end: str
    availability: dict[str, str] = Field(default_factory=dict)  # email -> free | busy

    @property
    def free_count(self) -> int:
        return sum(1 for v in self.availability.values() if v == "free")


class AvailabilitySummary(BaseModel):
    total_slots: int = 0
    all_free_slots: int = 0
    some_free_slots: int = 0
    all_busy_slots: int = 0
