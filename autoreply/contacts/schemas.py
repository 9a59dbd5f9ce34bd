"""Pydantic schemas for the contact profile API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .models import ContactProfile, ContactRole


class ContactProfilePayload(BaseModel):
    name: str | None = None
    role: ContactRole | None = None
    their_position: str | None = Field(default=None, alias="theirPosition")
    relationship: str | None = None
    custom_instructions: str | None = Field(default=None, alias="customInstructions")
    context_notes: str | None = Field(default=None, alias="contextNotes")

    model_config = {"populate_by_name": True}


class ContactProfileView(BaseModel):
    platform: str
    counterparty_external_id: str = Field(serialization_alias="counterpartyExternalId")
    name: str | None
    role: ContactRole
    their_position: str | None = Field(serialization_alias="theirPosition")
    relationship: str | None
    custom_instructions: str | None = Field(serialization_alias="customInstructions")
    context_notes: str | None = Field(serialization_alias="contextNotes")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @classmethod
    def from_profile(cls, profile: ContactProfile) -> "ContactProfileView":
        return cls(
            platform=profile.platform.value,
            counterparty_external_id=profile.counterparty_external_id,
            name=profile.name,
            role=profile.role,
            their_position=profile.their_position,
            relationship=profile.relationship,
            custom_instructions=profile.custom_instructions,
            context_notes=profile.context_notes,
            updated_at=profile.updated_at,
        )


class ContactResponse(BaseModel):
    success: bool = True
    contact: ContactProfileView


class ContactList(BaseModel):
    success: bool = True
    contacts: list[ContactProfileView]
    count: int
