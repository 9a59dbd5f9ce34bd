"""Provider credential helpers for OpenAI-compatible completion APIs."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderCredentials:
    """Container for credentials resolved for a provider."""

    provider: str
    api_key: str | None
    base_url: str | None
    extras: dict[str, str]

    def default_headers(self) -> dict[str, str]:
        """Extra HTTP headers the provider expects alongside the bearer token."""

        return dict(self.extras)


class ProviderRegistry:
    """Resolve provider credentials from environment or explicit overrides."""

    _DEFAULT_ENV_MAP: Mapping[str, str] = {
        "openai": "OPENAI_API_KEY",
        "openrouter": "OPENROUTER_API_KEY",
    }

    _DEFAULT_BASE_URLS: Mapping[str, str] = {
        "openrouter": "https://openrouter.ai/api/v1",
    }

    def __init__(self, overrides: Mapping[str, Mapping[str, str]] | None = None):
        self._overrides = {k.lower(): dict(v) for k, v in (overrides or {}).items()}

    def get_credentials(self, provider: str) -> ProviderCredentials:
        """Return credentials for ``provider``.

        Explicit overrides (e.g. injected during testing) win over
        environment variables from ``_DEFAULT_ENV_MAP``.
        """

        key = provider.lower()
        if key in self._overrides:
            override = self._overrides[key]
            return ProviderCredentials(
                provider=key,
                api_key=override.get("api_key"),
                base_url=override.get("base_url") or self._DEFAULT_BASE_URLS.get(key),
                extras={
                    k: v for k, v in override.items() if k not in {"api_key", "base_url"}
                },
            )
        env_var = self._DEFAULT_ENV_MAP.get(key)
        api_key = os.getenv(env_var) if env_var else None
        base_url = os.getenv(f"{key.upper()}_BASE_URL") or self._DEFAULT_BASE_URLS.get(key)
        extras: dict[str, str] = {}
        if key == "openrouter":
            referer = os.getenv("OPENROUTER_SITE_URL")
            if referer:
                extras["HTTP-Referer"] = referer
            extras["X-Title"] = os.getenv("OPENROUTER_APP_NAME", "autoreply")
        return ProviderCredentials(
            provider=key, api_key=api_key, base_url=base_url, extras=extras
        )
