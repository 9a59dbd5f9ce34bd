"""Webhook ingestion routes for the supported messaging platforms."""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from ..connections.models import Platform
from ..core.rate_limit import limiter, webhook_rate_limit
from ..runtime import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


def _resolve_platform(platform: str) -> Platform:
    try:
        return Platform.parse(platform)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _first_param(request: Request, *names: str) -> str | None:
    for name in names:
        value = request.query_params.get(name)
        if value is not None:
            return value
    return None


@router.get("/webhook/{platform}")
@router.get("/webhook/{platform}/{owner_identifier}")
async def verify_webhook(
    platform: str,
    request: Request,
    owner_identifier: str | None = None,
    services: Services = Depends(get_services),
):
    """Answer the subscription handshake by echoing the challenge."""

    _resolve_platform(platform)
    mode = _first_param(request, "hub.mode", "mode")
    token = _first_param(request, "hub.verify_token", "verify_token")
    challenge = _first_param(request, "hub.challenge", "challenge")
    expected = services.settings.webhook_verify_token
    if mode == "subscribe" and expected and token == expected:
        logger.info("Webhook verified for %s", platform)
        return PlainTextResponse(challenge or "")
    logger.warning("Webhook verification failed for %s", platform)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@router.post("/webhook/{platform}")
@router.post("/webhook/{platform}/{owner_identifier}")
@limiter.limit(webhook_rate_limit)
async def ingest_webhook(
    platform: str,
    request: Request,
    background_tasks: BackgroundTasks,
    owner_identifier: str | None = None,
    services: Services = Depends(get_services),
):
    """Authenticate, parse and acknowledge an inbound platform event.

    The reply itself is produced in a background task after the 200
    acknowledgement so the platform does not time out and redeliver.
    """

    resolved = _resolve_platform(platform)
    body_bytes = await request.body()
    if not services.verifier.verify(resolved, body_bytes, request.headers):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature"
        )

    try:
        payload = json.loads(body_bytes.decode("utf-8")) if body_bytes else {}
    except ValueError as exc:
        logger.warning("Ignoring %s webhook with invalid JSON: %s", platform, exc)
        return {"status": "ignored", "reason": "invalid_json"}
    if not isinstance(payload, dict):
        return {"status": "ignored", "reason": "invalid_payload"}

    if resolved is Platform.SLACK and payload.get("type") == "url_verification":
        return {"challenge": payload.get("challenge")}

    inbound = services.extractors[resolved].extract(payload)
    if inbound is None:
        return {"status": "ignored", "reason": "no_message"}

    owner = services.registry.resolve_owner(
        resolved, owner_identifier or inbound.recipient_external_id
    )
    if owner is None:
        logger.info("No owner found for %s message %s", platform, inbound.external_message_id)
        return {"status": "ignored", "reason": "unknown_owner"}

    # Unroutable messages are not remembered.
    if services.dedup.check_and_add((resolved, inbound.external_message_id)):
        logger.info(
            "Dropping redelivered %s message %s", platform, inbound.external_message_id
        )
        return {"status": "duplicate", "messageId": inbound.external_message_id}

    background_tasks.add_task(services.orchestrator.handle_inbound, inbound, owner)
    return {"status": "accepted", "messageId": inbound.external_message_id}
