"""Domain models for platform connections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Platform(str, Enum):
    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"
    EMAIL = "email"
    LINKEDIN = "linkedin"
    TELEGRAM = "telegram"
    SLACK = "slack"

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """Return the platform for ``value`` or raise ``ValueError``."""
        try:
            return cls(value.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported platform '{value}'") from exc


#: Credential bundle keys that identify the user's own account on a platform.
ACCOUNT_IDENTIFIER_KEYS = (
    "phone_number_id",
    "phone_number",
    "page_id",
    "account_id",
    "bot_id",
    "bot_user_id",
    "person_id",
    "email_address",
)


def normalize_identifier(value: Any) -> str:
    """Canonical form used when matching account identifiers.

    Phone numbers lose a leading ``+`` and email addresses compare
    case-insensitively, so everything is lowercased.
    """
    return str(value).strip().lstrip("+").lower()


@dataclass(frozen=True)
class PersonalizationProfile:
    """User-supplied settings that shape generated replies."""

    name: str = "the user"
    style: str = "friendly and helpful"
    tone: str = "helpful"
    response_style: str = "casual but professional"
    custom_instructions: str | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "PersonalizationProfile":
        data = data or {}
        defaults = cls()
        return cls(
            name=data.get("name") or defaults.name,
            style=data.get("style") or defaults.style,
            tone=data.get("tone") or defaults.tone,
            response_style=data.get("response_style")
            or data.get("responseStyle")
            or defaults.response_style,
            custom_instructions=data.get("custom_instructions")
            or data.get("customInstructions"),
        )


@dataclass
class PlatformConnection:
    owner_user_id: str
    platform: Platform
    credentials: dict[str, str] = field(default_factory=dict)
    auto_reply_enabled: bool = True
    personalization: PersonalizationProfile = field(
        default_factory=PersonalizationProfile
    )
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def account_identifiers(self) -> set[str]:
        """Identifiers under which the owner sends and receives on the platform."""
        return {
            normalize_identifier(self.credentials[key])
            for key in ACCOUNT_IDENTIFIER_KEYS
            if self.credentials.get(key)
        }


@dataclass(frozen=True)
class VerifiedPhoneNumber:
    phone_number: str
    owner_user_id: str
    verified_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
