"""Per-contact relationship profiles that refine generated replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..connections.models import Platform


class ContactRole(str, Enum):
    GENERAL = "general"
    HR = "hr"
    CLIENT = "client"
    MANAGER = "manager"
    FRIEND = "friend"
    FAMILY = "family"
    BUSINESS = "business"


@dataclass(frozen=True)
class RoleTemplate:
    style: str
    tone: str
    guidance: tuple[str, ...]


ROLE_TEMPLATES: dict[ContactRole, RoleTemplate] = {
    ContactRole.GENERAL: RoleTemplate(
        style="natural and friendly",
        tone="polite",
        guidance=("Match the contact's level of formality",),
    ),
    ContactRole.HR: RoleTemplate(
        style="professional and respectful",
        tone="formal but approachable",
        guidance=(
            "Be concise and to the point",
            "Show enthusiasm for opportunities",
            "Ask thoughtful questions about the role",
        ),
    ),
    ContactRole.CLIENT: RoleTemplate(
        style="professional and solution-focused",
        tone="confident and helpful",
        guidance=(
            "Focus on their business needs",
            "Maintain professional boundaries",
            "Follow up on commitments made",
        ),
    ),
    ContactRole.MANAGER: RoleTemplate(
        style="respectful and collaborative",
        tone="professional with appropriate deference",
        guidance=(
            "Respect their time and be clear",
            "Give status updates when asked",
        ),
    ),
    ContactRole.FRIEND: RoleTemplate(
        style="casual and friendly",
        tone="warm and conversational",
        guidance=(
            "Keep it relaxed",
            "Show genuine interest in their life",
        ),
    ),
    ContactRole.FAMILY: RoleTemplate(
        style="warm and personal",
        tone="loving and caring",
        guidance=(
            "Show concern for their wellbeing",
            "Be patient and understanding",
        ),
    ),
    ContactRole.BUSINESS: RoleTemplate(
        style="professional and strategic",
        tone="confident and knowledgeable",
        guidance=(
            "Be direct and results-oriented",
            "Keep focus on business objectives",
        ),
    ),
}


@dataclass(frozen=True)
class ContactKey:
    owner_user_id: str
    platform: Platform
    counterparty_external_id: str


@dataclass(frozen=True)
class ContactProfile:
    """What the owner has told us about one counterparty."""

    owner_user_id: str
    platform: Platform
    counterparty_external_id: str
    name: str | None = None
    role: ContactRole = ContactRole.GENERAL
    their_position: str | None = None
    relationship: str | None = None
    custom_instructions: str | None = None
    context_notes: str | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def template(self) -> RoleTemplate:
        return ROLE_TEMPLATES[self.role]
