"""Inbound email relay adapter."""

from __future__ import annotations

from collections.abc import Mapping
from email.utils import parseaddr
from typing import Any

from ..connections.models import Platform
from ..conversations.models import InboundMessage, MessageType
from .base import ChannelAdapter, PayloadError, epoch_ms, now_ms


class EmailAdapter(ChannelAdapter):
    platform = Platform.EMAIL

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        display_name, sender = parseaddr(str(payload.get("from") or ""))
        if not sender:
            raise PayloadError("from is missing")
        text = str(payload.get("body") or payload.get("text") or "").strip()
        subject = payload.get("subject")
        if text and subject:
            text = f"Subject: {subject}\n\n{text}"
        _, recipient = parseaddr(str(payload.get("to") or ""))

        received = epoch_ms(payload.get("timestamp") or payload.get("date")) or now_ms()
        return InboundMessage(
            platform=self.platform,
            external_message_id=str(payload.get("messageId") or f"{sender}:{received}"),
            sender_external_id=sender.lower(),
            sender_display_name=payload.get("fromName") or display_name or None,
            body_text=text,
            message_type=MessageType.TEXT,
            received_at_epoch_ms=received,
            recipient_external_id=recipient.lower() or None,
        )
