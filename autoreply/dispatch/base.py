"""Shared types for outbound platform senders."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

from ..connections.models import Platform

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    INVALID_RECIPIENT = "invalid_recipient"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a single send attempt."""

    ok: bool
    platform_message_id: str | None = None
    failure_kind: FailureKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, platform_message_id: str | None) -> "DispatchResult":
        return cls(ok=True, platform_message_id=platform_message_id)

    @classmethod
    def failure(cls, kind: FailureKind, detail: str | None = None) -> "DispatchResult":
        return cls(ok=False, failure_kind=kind, detail=detail)


def classify_status(status_code: int) -> FailureKind:
    """Map an HTTP error status onto a dispatch failure kind."""

    if status_code in (401, 403):
        return FailureKind.AUTH
    if status_code == 429:
        return FailureKind.RATE_LIMITED
    if status_code in (400, 404, 422):
        return FailureKind.INVALID_RECIPIENT
    return FailureKind.TRANSIENT


class PlatformSender(ABC):
    """Translate a (recipient, text) pair into one platform's send call."""

    platform: Platform

    #: Credential bundle keys that must be present before sending.
    required_credentials: tuple[str, ...] = ()

    def missing_credentials(self, credentials: Mapping[str, str]) -> list[str]:
        return [key for key in self.required_credentials if not credentials.get(key)]

    @abstractmethod
    def send(
        self,
        session: requests.Session,
        credentials: Mapping[str, str],
        recipient: str,
        text: str,
        *,
        timeout: float,
    ) -> DispatchResult:
        """Send ``text`` to ``recipient`` and report the platform's message id."""

    def _post(
        self,
        session: requests.Session,
        url: str,
        *,
        timeout: float,
        **kwargs: Any,
    ) -> tuple[Any, DispatchResult | None]:
        """POST and decode JSON, returning ``(payload, failure)``."""

        try:
            response = session.request("POST", url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            return None, DispatchResult.failure(FailureKind.TRANSIENT, f"timeout: {exc}")
        except requests.RequestException as exc:
            return None, DispatchResult.failure(FailureKind.TRANSIENT, str(exc))

        if response.status_code >= 400:
            kind = classify_status(response.status_code)
            logger.warning(
                "%s send failed with HTTP %s", self.platform.value, response.status_code
            )
            return None, DispatchResult.failure(kind, f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return None, DispatchResult.failure(
                FailureKind.TRANSIENT, "response body is not a JSON object"
            )
        return payload, None
