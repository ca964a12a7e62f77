"""Normalized directory contact data model."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ContactEmail(BaseModel):
    email: str
    type: Optional[str] = None


class ContactPhone(BaseModel):
    number: str
    type: Optional[str] = None


class Contact(BaseModel):
    """Directory contact normalized at the provider boundary."""

    id: str
    grant_id: Optional[str] = None
    given_name: Optional[str] = None
    surname: Optional[str] = None
    emails: list[ContactEmail] = Field(default_factory=list)
    phone_numbers: list[ContactPhone] = Field(default_factory=list)
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    notes: Optional[str] = None

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def primary_email(self) -> str:
        return self.emails[0].email if self.emails else ""

    @property
    def primary_phone(self) -> Optional[str]:
        return self.phone_numbers[0].number if self.phone_numbers else None

    @property
    def full_name(self) -> str:
        if self.given_name and self.surname:
            return f"{self.given_name} {self.surname}"
        return self.given_name or self.surname or self.primary_email

    def has_email(self, email: str) -> bool:
        target = email.strip().lower()
        return any(e.email.lower() == target for e in self.emails)


class NewContact(BaseModel):
    """Contact details for creation."""

    email: str
    given_name: Optional[str] = None
    surname: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    notes: Optional[str] = None

    def to_provider_format(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "emails": [{"email": self.email, "type": "work"}],
        }
        if self.phone:
            data["phone_numbers"] = [{"number": self.phone, "type": "work"}]
        for field in ("given_name", "surname", "company_name", "job_title", "notes"):
            value = getattr(self, field)
            if value is not None:
                data[field] = value
        return data


def normalize_contact(raw: dict[str, Any]) -> Contact:
    """Normalize a raw provider contact into a Contact."""
    return Contact(
        id=raw.get("id", ""),
        grant_id=raw.get("grant_id"),
        given_name=raw.get("given_name"),
        surname=raw.get("surname"),
        emails=[
            ContactEmail(email=e["email"], type=e.get("type"))
            for e in raw.get("emails") or []
            if e.get("email")
        ],
        phone_numbers=[
            ContactPhone(number=p["number"], type=p.get("type"))
            for p in raw.get("phone_numbers") or []
            if p.get("number")
        ],
        job_title=raw.get("job_title"),
        company_name=raw.get("company_name"),
        notes=raw.get("notes"),
        raw=raw,
    )
