"""Webhook origin verification."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..config import Settings
from ..connections.models import Platform
from .base import ChannelAdapter

logger = logging.getLogger(__name__)


class WebhookSignatureVerifier:
    """Check inbound webhook bodies against the platform's pre-shared secret.

    When no secret is configured for a platform the check is skipped outside
    production and fails closed in production.
    """

    def __init__(self, settings: Settings, adapters: Mapping[Platform, ChannelAdapter]) -> None:
        self._settings = settings
        self._adapters = adapters

    def verify(self, platform: Platform, body: bytes, headers: Mapping[str, str]) -> bool:
        secret = self._settings.webhook_secret(platform.value)
        if not secret:
            if self._settings.is_production:
                logger.warning(
                    "Rejecting %s webhook: no secret configured in production", platform.value
                )
                return False
            logger.debug("No %s webhook secret configured; skipping check", platform.value)
            return True
        adapter = self._adapters[platform]
        if adapter.verify_signature(body, headers, secret):
            return True
        logger.warning("Invalid %s webhook signature", platform.value)
        return False
