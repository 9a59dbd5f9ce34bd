"""Runtime configuration resolved from environment variables.

Values are read once through :func:`get_settings` and cached. Tests that
change the environment should call :func:`reset_settings_cache` afterwards.
"""

from __future__ import annotations

import dataclasses
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

PLATFORMS = ("whatsapp", "instagram", "email", "linkedin", "telegram", "slack")


@dataclasses.dataclass(frozen=True)
class Settings:
    """Service-wide configuration."""

    app_env: str = "development"
    webhook_secrets: dict[str, str] = dataclasses.field(default_factory=dict)
    webhook_verify_token: str | None = None
    whatsapp_access_token: str | None = None
    whatsapp_phone_number_id: str | None = None
    graph_api_url: str = "https://graph.facebook.com/v18.0"
    reply_provider: str = "openrouter"
    reply_model: str = "anthropic/claude-3-haiku"
    reply_timeout_seconds: float = 20.0
    dispatch_timeout_seconds: float = 10.0
    context_window: int = 5
    dedup_ttl_seconds: int = 600
    conversation_max_count: int = 10_000
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 3
    operator_token: str | None = None
    webhook_rate_limit: str = "100/minute"
    otp_rate_limit: str = "5/minute"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def webhook_secret(self, platform: str) -> str | None:
        return self.webhook_secrets.get(platform.lower()) or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment with development defaults."""

    secrets = {
        platform: value
        for platform in PLATFORMS
        if (value := os.getenv(f"{platform.upper()}_WEBHOOK_SECRET"))
    }
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        webhook_secrets=secrets,
        webhook_verify_token=os.getenv("WEBHOOK_VERIFY_TOKEN"),
        whatsapp_access_token=os.getenv("WHATSAPP_ACCESS_TOKEN"),
        whatsapp_phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID"),
        graph_api_url=os.getenv("GRAPH_API_URL", "https://graph.facebook.com/v18.0"),
        reply_provider=os.getenv("REPLY_PROVIDER", "openrouter"),
        reply_model=os.getenv("REPLY_MODEL", "anthropic/claude-3-haiku"),
        reply_timeout_seconds=float(os.getenv("REPLY_TIMEOUT_SECONDS", "20")),
        dispatch_timeout_seconds=float(os.getenv("DISPATCH_TIMEOUT_SECONDS", "10")),
        context_window=int(os.getenv("CONTEXT_WINDOW", "5")),
        dedup_ttl_seconds=int(os.getenv("DEDUP_TTL_SECONDS", "600")),
        conversation_max_count=int(os.getenv("CONVERSATION_MAX_COUNT", "10000")),
        otp_ttl_seconds=int(os.getenv("OTP_TTL_SECONDS", "300")),
        otp_max_attempts=int(os.getenv("OTP_MAX_ATTEMPTS", "3")),
        operator_token=os.getenv("OPERATOR_TOKEN"),
        webhook_rate_limit=os.getenv("WEBHOOK_RATE_LIMIT", "100/minute"),
        otp_rate_limit=os.getenv("OTP_RATE_LIMIT", "5/minute"),
    )


def reset_settings_cache() -> None:
    """Clear cached settings; useful in tests when env vars change."""

    get_settings.cache_clear()
