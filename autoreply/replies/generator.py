"""Reply generation through an OpenAI-compatible chat completion API."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import openai
from openai import OpenAI

from ..config import Settings
from ..connections.models import PersonalizationProfile, Platform
from ..contacts.models import ContactProfile
from ..conversations.models import ConversationMessage
from .prompts import ReplyPromptBuilder
from .providers import ProviderRegistry

logger = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    TIMEOUT = "timeout"
    EMPTY = "empty"


@dataclass(frozen=True)
class GenerationResult:
    status: GenerationStatus
    text: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is GenerationStatus.OK


class ReplyGenerator:
    """Produce a short reply in the user's voice.

    Every call is bounded by ``timeout`` and is never retried; timeouts,
    provider errors and blank completions come back as non-``ok`` results
    instead of exceptions.
    """

    def __init__(
        self,
        *,
        provider: str = "openrouter",
        model: str = "anthropic/claude-3-haiku",
        timeout: float = 20.0,
        client: Any | None = None,
        providers: ProviderRegistry | None = None,
        temperature: float = 0.7,
        max_tokens: int = 150,
        prompts: ReplyPromptBuilder | None = None,
    ) -> None:
        self.provider = provider.lower()
        self.model = model
        self.timeout = timeout
        self._providers = providers or ProviderRegistry()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._prompts = prompts or ReplyPromptBuilder()
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "ReplyGenerator":
        return cls(
            provider=settings.reply_provider,
            model=settings.reply_model,
            timeout=settings.reply_timeout_seconds,
            **kwargs,
        )

    def _get_client(self) -> Any | None:
        if self._client is None:
            credentials = self._providers.get_credentials(self.provider)
            if not credentials.api_key:
                return None
            self._client = OpenAI(
                api_key=credentials.api_key,
                base_url=credentials.base_url,
                default_headers=credentials.default_headers() or None,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def generate(
        self,
        context_messages: Sequence[ConversationMessage],
        profile: PersonalizationProfile,
        latest_message: str,
        platform: Platform | None = None,
        contact: ContactProfile | None = None,
    ) -> GenerationResult:
        client = self._get_client()
        if client is None:
            logger.warning("No API key configured for provider %s", self.provider)
            return GenerationResult(GenerationStatus.FAILED, detail="provider not configured")

        prompt = self._prompts.build(
            context_messages, profile, latest_message, platform, contact
        )
        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except openai.APITimeoutError as exc:
            logger.warning("Reply generation timed out after %ss", self.timeout)
            return GenerationResult(GenerationStatus.TIMEOUT, detail=str(exc))
        except openai.OpenAIError as exc:
            logger.warning("Reply generation failed: %s", exc)
            return GenerationResult(GenerationStatus.FAILED, detail=str(exc))

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        text = (content or "").strip()
        if not text:
            logger.info("Reply generation returned an empty completion")
            return GenerationResult(GenerationStatus.EMPTY)
        return GenerationResult(GenerationStatus.OK, text=text)
