"""Pydantic schemas for connection management APIs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .models import PlatformConnection

_REDACTED = "***"


class PersonalizationPayload(BaseModel):
    name: str | None = None
    style: str | None = None
    tone: str | None = None
    response_style: str | None = Field(default=None, alias="responseStyle")
    custom_instructions: str | None = Field(default=None, alias="customInstructions")

    model_config = {"populate_by_name": True}


class ConnectionUpsert(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)
    platform: str
    credentials: dict[str, str] = Field(default_factory=dict)
    auto_reply_enabled: bool = Field(default=True, alias="autoReplyEnabled")
    personalization: PersonalizationPayload | None = None

    model_config = {"populate_by_name": True}


class ConnectionView(BaseModel):
    platform: str
    auto_reply_enabled: bool = Field(serialization_alias="autoReplyEnabled")
    connected_at: datetime = Field(serialization_alias="connectedAt")
    credentials: dict[str, str]
    personalization: dict[str, str | None]

    @classmethod
    def from_connection(cls, connection: PlatformConnection) -> "ConnectionView":
        profile = connection.personalization
        return cls(
            platform=connection.platform.value,
            auto_reply_enabled=connection.auto_reply_enabled,
            connected_at=connection.connected_at,
            credentials={key: _REDACTED for key in connection.credentials},
            personalization={
                "name": profile.name,
                "style": profile.style,
                "tone": profile.tone,
                "responseStyle": profile.response_style,
                "customInstructions": profile.custom_instructions,
            },
        )


class ToggleResponse(BaseModel):
    success: bool = True
    enabled: bool


class ToggleRequest(BaseModel):
    enabled: bool | None = None


class PlatformList(BaseModel):
    success: bool = True
    platforms: list[ConnectionView]
