"""WhatsApp Business channel adapter."""

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


class WhatsAppAdapter(ChannelAdapter):
    platform = Platform.WHATSAPP
    signature_header = "X-Hub-Signature-256"

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        entries = payload.get("entry") or []
        if not entries:
            return None
        changes = entries[0].get("changes") or []
        if not changes:
            return None
        value = changes[0].get("value") or {}
        messages = value.get("messages") or []
        if not messages:
            # Delivery/read status callbacks carry ``statuses`` instead.
            return None
        message = messages[0]
        sender_id = message.get("from")
        if not sender_id:
            raise PayloadError("message.from is missing")
        contacts = {c.get("wa_id"): c for c in value.get("contacts") or []}
        contact = contacts.get(sender_id) or ((value.get("contacts") or [{}])[0])
        name = (contact.get("profile") or {}).get("name")

        message_type = message.get("type") or "text"
        if message_type == "text":
            body = (message.get("text") or {}).get("body", "")
            kind = MessageType.TEXT
        else:
            body, kind = media_placeholder(message_type)

        return InboundMessage(
            platform=self.platform,
            external_message_id=str(message.get("id") or f"{sender_id}:{message.get('timestamp')}"),
            sender_external_id=str(sender_id),
            sender_display_name=name,
            body_text=body,
            message_type=kind,
            received_at_epoch_ms=epoch_ms(message.get("timestamp")) or now_ms(),
            recipient_external_id=optional_id((value.get("metadata") or {}).get("phone_number_id")),
        )
