"""Base abstractions for platform channel adapters."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ..connections.models import Platform
from ..conversations.models import InboundMessage, MessageType

logger = logging.getLogger(__name__)

MEDIA_TYPES = {"image", "audio", "video", "document", "sticker", "voice", "photo", "file"}


class PayloadError(ValueError):
    """Raised by adapters when a payload lacks a required field."""


def media_placeholder(kind: str | None) -> tuple[str, MessageType]:
    """Return the fixed body used in place of non-text content."""

    if kind and kind.lower() in MEDIA_TYPES:
        return f"[{kind.lower().capitalize()} message]", MessageType.MEDIA
    return "[Unsupported message type]", MessageType.UNKNOWN


def hmac_sha256_hex(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def now_ms() -> int:
    return int(time.time() * 1000)


def optional_id(value: Any) -> str | None:
    """Platform ids arrive as strings or JSON numbers; missing ones become None."""
    if value is None or value == "":
        return None
    return str(value)


def epoch_ms(value: Any) -> int | None:
    """Coerce seconds, milliseconds, or ISO-8601 strings into epoch ms."""

    if value in (None, ""):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        try:
            return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp() * 1000)
        except ValueError:
            return None
    # Values below ~year 2286 in seconds are assumed to be seconds.
    if number < 10_000_000_000:
        number *= 1000
    return int(number)


class ChannelAdapter(ABC):
    """Abstract base class encapsulating platform-specific webhook handling."""

    #: Platform served by the adapter; also used in routes and configuration.
    platform: Platform

    #: Header carrying the signature for the default HMAC scheme.
    signature_header = "X-Signature"

    @abstractmethod
    def parse_incoming(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        """Convert a webhook payload into at most one normalized message.

        Implementations raise :class:`PayloadError` (or let ``KeyError`` /
        ``TypeError`` escape) for malformed payloads; :meth:`extract` turns
        those into a logged no-op.
        """

    def extract(self, payload: Mapping[str, Any]) -> InboundMessage | None:
        try:
            return self.parse_incoming(payload)
        except (PayloadError, KeyError, IndexError, TypeError, AttributeError, ValueError) as exc:
            logger.warning(
                "Ignoring malformed %s payload: %s", self.platform.value, exc
            )
            return None

    def verify_signature(
        self,
        body: bytes,
        headers: Mapping[str, str],
        secret: str,
    ) -> bool:
        """Validate authenticity of the webhook payload against ``secret``.

        The default scheme is ``sha256=<hex hmac>`` in :attr:`signature_header`.
        """

        received = headers.get(self.signature_header)
        if not received:
            return False
        expected = f"sha256={hmac_sha256_hex(secret, body)}"
        return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))
