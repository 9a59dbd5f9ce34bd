"""Channel adapters for multi-platform webhook ingestion."""

from __future__ import annotations

from ..connections.models import Platform
from .base import ChannelAdapter, PayloadError
from .email import EmailAdapter
from .instagram import InstagramAdapter
from .linkedin import LinkedInAdapter
from .signatures import WebhookSignatureVerifier
from .slack import SlackAdapter
from .telegram import TelegramAdapter
from .whatsapp import WhatsAppAdapter

BUILTIN_ADAPTERS: tuple[type[ChannelAdapter], ...] = (
    WhatsAppAdapter,
    InstagramAdapter,
    TelegramAdapter,
    SlackAdapter,
    LinkedInAdapter,
    EmailAdapter,
)


def build_extractor_registry() -> dict[Platform, ChannelAdapter]:
    """Instantiate one adapter per supported platform."""
    return {adapter.platform: adapter() for adapter in BUILTIN_ADAPTERS}


__all__ = [
    "BUILTIN_ADAPTERS",
    "ChannelAdapter",
    "PayloadError",
    "WebhookSignatureVerifier",
    "build_extractor_registry",
]
