"""Development-only route that pushes a message through the reply pipeline."""

from __future__ import annotations

from dataclasses import asdict
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..connections.models import Platform
from ..conversations.models import InboundMessage
from ..runtime import Services, get_services

router = APIRouter(prefix="/api/test", tags=["testing"])


class SimulatedMessageRequest(BaseModel):
    user_id: str = Field(alias="userId")
    platform: str = "whatsapp"
    sender_id: str = Field(default="test-contact", alias="senderId")
    sender_name: str | None = Field(default=None, alias="senderName")
    message: str


@router.post("/message")
def run_test_message(payload: SimulatedMessageRequest, services: Services = Depends(get_services)):
    """Run the orchestrator synchronously and return its outcome."""

    if services.settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")
    try:
        platform = Platform.parse(payload.platform)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    inbound = InboundMessage(
        platform=platform,
        external_message_id=f"test-{uuid4().hex}",
        sender_external_id=payload.sender_id,
        sender_display_name=payload.sender_name,
        body_text=payload.message,
    )
    outcome = services.orchestrator.handle_inbound(inbound, payload.user_id)
    return {"success": outcome.replied, "outcome": asdict(outcome)}
