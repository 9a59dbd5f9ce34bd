"""Outbound message dispatch through each platform's send API."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests

from ..connections.models import Platform
from .base import DispatchResult, FailureKind, PlatformSender, classify_status
from .senders import default_senders

logger = logging.getLogger(__name__)


class PlatformDispatcher:
    """Send a text to a recipient on any supported platform.

    The dispatcher never retries and never raises for platform or network
    errors; callers inspect :class:`DispatchResult` instead.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        graph_api_url: str = "https://graph.facebook.com/v18.0",
        timeout: float = 10.0,
        senders: Mapping[Platform, PlatformSender] | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self._senders = dict(senders or default_senders(graph_api_url))

    def send(
        self,
        platform: Platform,
        credentials: Mapping[str, str],
        recipient: str,
        text: str,
    ) -> DispatchResult:
        sender = self._senders.get(platform)
        if sender is None:
            return DispatchResult.failure(
                FailureKind.TRANSIENT, f"no sender for {platform.value}"
            )
        missing = sender.missing_credentials(credentials)
        if missing:
            logger.warning(
                "Cannot send on %s: missing credentials %s",
                platform.value,
                ", ".join(missing),
            )
            return DispatchResult.failure(
                FailureKind.AUTH, f"missing credentials: {', '.join(missing)}"
            )
        result = sender.send(
            self.session, credentials, recipient, text, timeout=self.timeout
        )
        if result.ok:
            logger.info(
                "Sent %s message %s", platform.value, result.platform_message_id
            )
        else:
            logger.warning(
                "Dispatch on %s failed (%s): %s",
                platform.value,
                result.failure_kind.value if result.failure_kind else "unknown",
                result.detail,
            )
        return result


__all__ = [
    "DispatchResult",
    "FailureKind",
    "PlatformDispatcher",
    "PlatformSender",
    "classify_status",
]
