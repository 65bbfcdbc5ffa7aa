"""
Identity Reconciliation Type Definitions

Types for contact rows, incoming observations and the consolidated view.
Wire names follow the public API (camelCase); Python attributes stay snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LinkPrecedence(str, Enum):
    """Role of a contact row inside its cluster."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class Contact(BaseModel):
    """A single stored contact row."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str | None = None
    phone_number: str | None = None
    linked_id: int | None = None
    link_precedence: LinkPrecedence
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_primary(self) -> bool:
        return self.link_precedence == LinkPrecedence.PRIMARY

    @property
    def age_key(self) -> tuple[datetime, int]:
        """Ordering key: oldest first, lowest id on ties."""
        return (self.created_at, self.id)


class Observation(BaseModel):
    """An incoming (email, phone) sighting of a person."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    phone_number: str | None = Field(default=None, alias="phoneNumber")

    @field_validator("email", "phone_number", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # Clients commonly send phone numbers as JSON numbers.
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else str(value)
        # Whitespace-only means absent; anything else is matched exactly as sent.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_empty(self) -> bool:
        return self.email is None and self.phone_number is None


class ConsolidatedIdentity(BaseModel):
    """Externally visible view of one contact cluster."""

    model_config = ConfigDict(populate_by_name=True)

    primary_contact_id: int = Field(alias="primaryContactId")
    emails: list[str] = Field(default_factory=list)
    phone_numbers: list[str] = Field(default_factory=list, alias="phoneNumbers")
    secondary_contact_ids: list[int] = Field(default_factory=list, alias="secondaryContactIds")


class IdentifyResponse(BaseModel):
    """Response body for the identify endpoint."""

    contact: ConsolidatedIdentity
