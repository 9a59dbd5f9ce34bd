"""Slack Events API channel adapter."""

from __future__ import annotations

import hmac
import time
from collections.abc import Mapping
from typing import Any

from ..connections.models import Platform
from ..conversations.models import InboundMessage, MessageType
from .base import (
    ChannelAdapter,
    PayloadError,
    epoch_ms,
    hmac_sha256_hex,
    media_placeholder,
    now_ms,
    optional_id,
)

#: Requests signed longer ago than this are treated as replays.
MAX_TIMESTAMP_SKEW_SECONDS = 60 * 5


class SlackAdapter(ChannelAdapter):
    platform = Platform.SLACK
    signature_header = "X-Slack-Signature"
    timestamp_header = "X-Slack-Request-Timestamp"

    def verify_signature(
        self,
        body: bytes,
        headers: Mapping[str, str],
        secret: str,
    ) -> bool:
        received = headers.get(self.signature_header)
        timestamp = headers.get(self.timestamp_header)
        if not received or not timestamp:
            return False
        try:
            issued = int(timestamp)
        except ValueError:
            return False
        if abs(time.time() - issued) > MAX_TIMESTAMP_SKEW_SECONDS:
            return False
        basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
        expected = f"v0={hmac_sha256_hex(secret, basestring)}"
        return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))

    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        if payload.get("type") != "event_callback":
            return None
        event = payload.get("event") or {}
        if event.get("type") != "message":
            return None
        subtype = event.get("subtype")
        if event.get("bot_id") or (subtype and subtype != "file_share"):
            return None
        user = event.get("user")
        if not user:
            raise PayloadError("event.user is missing")

        files = event.get("files") or []
        if event.get("text"):
            body, kind = event["text"], MessageType.TEXT
        elif files:
            body, kind = media_placeholder(_file_kind(files[0]))
        else:
            body, kind = media_placeholder(None)

        return InboundMessage(
            platform=self.platform,
            external_message_id=str(event.get("client_msg_id") or event.get("ts")),
            sender_external_id=str(user),
            body_text=body,
            message_type=kind,
            received_at_epoch_ms=epoch_ms(event.get("ts")) or now_ms(),
            recipient_external_id=optional_id(payload.get("team_id")),
        )


def _file_kind(file: Mapping[str, Any]) -> str:
    mimetype = str(file.get("mimetype") or "")
    major = mimetype.split("/", 1)[0]
    if major in {"image", "audio", "video"}:
        return major
    return "document"
