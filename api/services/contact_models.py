"""
Contact record and request models for the Contacts bridge.

ContactRecord mirrors what Contacts.app exposes for a person through
AppleScript. Request models validate tool/API arguments before any script
is built.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

# Collections that are replaced wholesale on update
COLLECTION_FIELDS = ("emails", "phones", "urls")

# Fixed order in which update applies fields
UPDATE_FIELD_ORDER = ("name", "organization", "job_title", "note", "emails", "phones", "urls")

RecentType = Literal["created", "modified", "both"]


class ContactUrl(BaseModel):
    """A labeled URL, e.g. {"label": "LinkedIn", "value": "https://..."}."""
    label: str
    value: str


@dataclass
class ContactRecord:
    """A person in Contacts.app."""
    id: str = ""
    name: str = ""
    organization: str = ""
    job_title: str = ""
    note: str = ""
    emails: list[str] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)
    urls: list[ContactUrl] = field(default_factory=list)
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dict for API/tool responses."""
        return {
            "id": self.id,
            "name": self.name,
            "organization": self.organization,
            "job_title": self.job_title,
            "note": self.note,
            "emails": list(self.emails),
            "phones": list(self.phones),
            "urls": [u.model_dump() for u in self.urls],
            "creation_date": self.creation_date.isoformat() if self.creation_date else None,
            "modification_date": self.modification_date.isoformat() if self.modification_date else None,
        }


def split_name(name: str) -> tuple[str, str]:
    """
    Split a display name into (first name, last name).

    Contacts models first and last name separately. The first whitespace
    token becomes the first name and the remainder the last name, so
    "Ada King Lovelace" -> ("Ada", "King Lovelace") and "Plato" -> ("Plato", "").
    This is lossy for honorifics and multiple given names.
    """
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def value_label(collection: str, index: int) -> str:
    """
    Label for the index-th email or phone written to Contacts.

    0 -> "home", 1 -> "work", n >= 2 -> "email{n+1}" / "phone{n+1}".
    """
    if index == 0:
        return "home"
    if index == 1:
        return "work"
    prefix = "email" if collection == "emails" else "phone"
    return f"{prefix}{index + 1}"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    query: Optional[str] = Field(default=None, description="Substring matched against name, organization, or note")
    limit: int = Field(default=20, ge=1, description="Maximum number of results")


class FetchRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Contact id or exact name")

    @field_validator("identifier")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("identifier must not be blank")
        return v.strip()


class CreateContactRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Full name of the contact")
    organization: Optional[str] = None
    job_title: Optional[str] = None
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    urls: list[ContactUrl] = Field(default_factory=list)
    note: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class UpdateContactRequest(BaseModel):
    """
    Partial update. Only fields present in the payload are applied; an
    explicit empty list clears a collection.
    """
    identifier: str = Field(..., min_length=1, description="Contact id or exact name")
    name: Optional[str] = None
    organization: Optional[str] = None
    job_title: Optional[str] = None
    emails: Optional[list[str]] = None
    phones: Optional[list[str]] = None
    urls: Optional[list[ContactUrl]] = None
    note: Optional[str] = None

    @field_validator("identifier")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("identifier must not be blank")
        return v.strip()

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        # Only runs when name is provided; a blank name would clear first and last name
        if v is None:
            return v
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    def provided_fields(self) -> list[str]:
        """Fields to update, in the fixed order they are applied."""
        provided = self.model_fields_set
        return [
            name for name in UPDATE_FIELD_ORDER
            if name in provided and getattr(self, name) is not None
        ]


class RecentRequest(BaseModel):
    days_back: int = Field(default=30, ge=1, description="How many days back to look")
    type: RecentType = Field(default="modified", description="Date to filter by")
    limit: int = Field(default=20, ge=1, description="Maximum number of results")


@dataclass
class FieldUpdate:
    """Outcome of one independent field mutation during update."""
    field: str
    ok: bool
    reason: str = ""
