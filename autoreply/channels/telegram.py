"""Telegram bot channel adapter."""

from __future__ import annotations

import hmac
from collections.abc import Mapping
from typing import Any

from ..connections.models import Platform
from ..conversations.models import InboundMessage, MessageType
from .base import ChannelAdapter, PayloadError, epoch_ms, media_placeholder, now_ms

_MEDIA_KEYS = ("photo", "voice", "audio", "video", "document", "sticker")


class TelegramAdapter(ChannelAdapter):
    platform = Platform.TELEGRAM
    signature_header = "X-Telegram-Bot-Api-Secret-Token"

    def verify_signature(
        self,
        body: bytes,
        headers: Mapping[str, str],
        secret: str,
    ) -> bool:
        # Telegram echoes the configured secret token rather than signing the body.
        received = headers.get(self.signature_header)
        if not received:
            return False
        return hmac.compare_digest(received.encode("utf-8"), secret.encode("utf-8"))

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        message = payload.get("message") or payload.get("edited_message")
        if not message:
            return None
        user = message.get("from") or {}
        if not user.get("id"):
            raise PayloadError("message.from.id is missing")
        if user.get("is_bot"):
            return None

        text = message.get("text")
        if text:
            body, kind = text, MessageType.TEXT
        else:
            media = next((key for key in _MEDIA_KEYS if message.get(key)), None)
            body, kind = media_placeholder(media)

        chat = message.get("chat") or {}
        return InboundMessage(
            platform=self.platform,
            external_message_id=f"{chat.get('id')}:{message.get('message_id')}",
            sender_external_id=str(user["id"]),
            sender_display_name=self._display_name(user),
            body_text=body,
            message_type=kind,
            received_at_epoch_ms=epoch_ms(message.get("date")) or now_ms(),
        )

    def _display_name(self, user: Mapping[str, Any]) -> str | None:
        name = user.get("username") or " ".join(
            filter(None, [user.get("first_name"), user.get("last_name")])
        ).strip()
        return name or None
