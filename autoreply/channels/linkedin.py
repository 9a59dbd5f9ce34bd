"""LinkedIn messaging relay adapter."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..connections.models import Platform
from ..conversations.models import InboundMessage, MessageType
from .base import (
    ChannelAdapter,
    PayloadError,
    epoch_ms,
    media_placeholder,
    now_ms,
    optional_id,
)


class LinkedInAdapter(ChannelAdapter):
    platform = Platform.LINKEDIN

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        sender = payload.get("from")
        if not sender:
            raise PayloadError("from is missing")
        text = payload.get("message")
        if isinstance(text, Mapping):
            text = text.get("text")
        if text:
            body, kind = str(text), MessageType.TEXT
        else:
            body, kind = media_placeholder(payload.get("type"))

        received = epoch_ms(payload.get("timestamp")) or now_ms()
        return InboundMessage(
            platform=self.platform,
            external_message_id=str(payload.get("id") or f"{sender}:{received}"),
            sender_external_id=str(sender),
            sender_display_name=payload.get("fromName"),
            body_text=body,
            message_type=kind,
            received_at_epoch_ms=received,
            recipient_external_id=optional_id(payload.get("to")),
        )
