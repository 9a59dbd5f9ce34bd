"""Domain models used by the conversation store."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple
from uuid import uuid4

from ..connections.models import Platform


class MessageType(str, Enum):
    TEXT = "text"
    MEDIA = "media"
    UNKNOWN = "unknown"


class Direction(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class InboundMessage:
    """Uniform representation of an inbound platform message."""

    platform: Platform
    external_message_id: str
    sender_external_id: str
    body_text: str
    message_type: MessageType = MessageType.TEXT
    sender_display_name: str | None = None
    received_at_epoch_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    recipient_external_id: str | None = None

    @property
    def is_actionable_text(self) -> bool:
        return self.message_type is MessageType.TEXT and bool(self.body_text.strip())


@dataclass(frozen=True)
class ConversationMessage:
    direction: Direction
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_auto_reply: bool = False
    external_message_id: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def incoming(cls, inbound: InboundMessage) -> "ConversationMessage":
        return cls(
            direction=Direction.INCOMING,
            text=inbound.body_text,
            timestamp=datetime.fromtimestamp(
                inbound.received_at_epoch_ms / 1000, tz=timezone.utc
            ),
            external_message_id=inbound.external_message_id,
        )

    @classmethod
    def auto_reply(cls, text: str, external_message_id: str | None = None) -> "ConversationMessage":
        return cls(
            direction=Direction.OUTGOING,
            text=text,
            is_auto_reply=True,
            external_message_id=external_message_id,
        )


class ConversationKey(NamedTuple):
    owner_user_id: str
    counterparty_external_id: str
    platform: Platform


@dataclass
class Conversation:
    key: ConversationKey
    counterparty_display_name: str
    id: str = field(default_factory=lambda: uuid4().hex)
    messages: list[ConversationMessage] = field(default_factory=list)

    @property
    def owner_user_id(self) -> str:
        return self.key.owner_user_id

    @property
    def counterparty_external_id(self) -> str:
        return self.key.counterparty_external_id

    @property
    def platform(self) -> Platform:
        return self.key.platform

    @property
    def unread_count(self) -> int:
        """Incoming messages received after the most recent outgoing one."""
        count = 0
        for message in reversed(self.messages):
            if message.direction is Direction.OUTGOING:
                break
            count += 1
        return count
