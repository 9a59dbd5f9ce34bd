"""FastAPI application wiring for the auto-reply service.

This module bootstraps the HTTP API:

- Configures logging, Prometheus metrics and per-IP rate limiting.
- Builds the shared stores, channel adapters, reply generator and platform
  dispatcher once per application and attaches them to ``app.state``.
- Mounts the webhook, OTP, conversation, connection and contact routers,
  plus the development-only test route when not running in production.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .__version__ import __build_date__, __commit_sha__, __version__
from .app_logging import init_logging
from .config import Settings, get_settings
from .core.rate_limit import get_client_ip, limiter
from .routers import connections, contacts, conversations, otp, testing, webhooks
from .runtime import Services, build_services

logger = logging.getLogger(__name__)

__all__ = ["app", "create_app", "get_client_ip"]


def create_app(
    settings: Settings | None = None,
    services: Services | None = None,
) -> FastAPI:
    """Build a fully wired application.

    ``services`` lets tests supply stores and clients with fakes injected;
    otherwise they are built from ``settings``.
    """

    settings = settings or get_settings()
    services = services or build_services(settings)

    app = FastAPI(title="Auto-Reply Service", version=__version__)
    init_logging(app)
    app.state.services = services
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.include_router(webhooks.router)
    app.include_router(otp.router)
    app.include_router(conversations.router)
    app.include_router(connections.router)
    app.include_router(contacts.router)
    if not settings.is_production:
        app.include_router(testing.router)

    @app.get("/health")
    @app.get("/api/health")
    async def health(request: Request):
        """Liveness probe with store counts."""
        state: Services = request.app.state.services
        return {
            "status": "ok",
            "connections": state.registry.count(),
            "conversations": state.conversations.count(),
            "otpSessions": state.otp.live_count(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/version")
    async def version():
        """Return version information for the application."""
        return {
            "version": __version__,
            "build_date": __build_date__,
            "commit_sha": __commit_sha__,
        }

    # Expose Prometheus metrics
    Instrumentator().instrument(app).expose(
        app, include_in_schema=False, endpoint="/api/metrics"
    )
    logger.info(
        "Auto-reply service %s started (env=%s)", __version__, settings.app_env
    )
    return app


app = create_app()
