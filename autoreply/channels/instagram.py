"""Instagram messaging channel adapter."""

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


class InstagramAdapter(ChannelAdapter):
    platform = Platform.INSTAGRAM
    signature_header = "X-Hub-Signature-256"

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        entries = payload.get("entry") or []
        if not entries:
            return None
        messaging = entries[0].get("messaging") or []
        if not messaging:
            return None
        event = messaging[0]
        message = event.get("message")
        if not message or message.get("is_echo"):
            # Echoes of our own sends and read/reaction events are not inbound text.
            return None
        sender_id = (event.get("sender") or {}).get("id")
        if not sender_id:
            raise PayloadError("sender.id is missing")

        attachments = message.get("attachments") or []
        if message.get("text"):
            body, kind = message["text"], MessageType.TEXT
        elif attachments:
            body, kind = media_placeholder(attachments[0].get("type"))
        else:
            body, kind = media_placeholder(None)

        return InboundMessage(
            platform=self.platform,
            external_message_id=str(message.get("mid") or f"{sender_id}:{event.get('timestamp')}"),
            sender_external_id=str(sender_id),
            body_text=body,
            message_type=kind,
            received_at_epoch_ms=epoch_ms(event.get("timestamp")) or now_ms(),
            recipient_external_id=optional_id((event.get("recipient") or {}).get("id")),
        )
