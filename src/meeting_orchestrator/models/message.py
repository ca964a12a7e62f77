"""Outgoing email message data model."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Recipient(BaseModel):
    email: str
    name: Optional[str] = None


class OutgoingMessage(BaseModel):
    """Email sent on behalf of a grant."""

    to: list[Recipient]
    subject: str
    body: str
    cc: list[Recipient] = Field(default_factory=list)
    bcc: list[Recipient] = Field(default_factory=list)
    reply_to: list[Recipient] = Field(default_factory=list)

    def to_provider_format(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "to": [r.model_dump(exclude_none=True) for r in self.to],
            "subject": self.subject,
            "body": self.body,
        }
        for field in ("cc", "bcc", "reply_to"):
            recipients = getattr(self, field)
            if recipients:
                data[field] = [r.model_dump(exclude_none=True) for r in recipients]
        return data


class SentMessage(BaseModel):
    """Provider acknowledgement of a sent message."""

    id: str
    thread_id: Optional[str] = None


def normalize_message(raw: dict[str, Any]) -> SentMessage:
    return SentMessage(id=raw.get("id", ""), thread_id=raw.get("thread_id"))
