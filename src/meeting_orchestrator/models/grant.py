"""Provider grant data model."""

from datetime import datetime
from enum import Enum
from typing import Optional

import pytz
from pydantic import BaseModel, Field, field_validator


class GrantStatus(str, Enum):
    """Grant status enumeration."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Grant(BaseModel):
    """
    One user's authorized connection to the calendar/email provider.

    Grants are created on OAuth callback, updated in place on reconnection
    and marked revoked on disconnect. They are never hard-deleted.
    """

    company_id: str
    user_id: str
    provider: str = "google"
    grant_id: str
    status: GrantStatus = GrantStatus.ACTIVE
    email: str
    scopes: list[str] = Field(default_factory=list)
    last_validated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_active(self) -> bool:
        return self.status == GrantStatus.ACTIVE
