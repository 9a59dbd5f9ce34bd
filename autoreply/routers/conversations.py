"""Conversation history API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..conversations import schemas as convo_schemas
from ..conversations.service import ConversationNotFoundError
from ..runtime import Services, get_services

router = APIRouter(prefix="/api", tags=["conversations"])


@router.get("/conversations/{owner_user_id}", response_model=convo_schemas.ConversationList)
def list_conversations(owner_user_id: str, services: Services = Depends(get_services)):
    return services.conversations.list_conversations(owner_user_id)


@router.get("/conversation/{conversation_id}", response_model=convo_schemas.ConversationResponse)
def get_conversation(conversation_id: str, services: Services = Depends(get_services)):
    try:
        conversation = services.conversations.get_conversation(conversation_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return convo_schemas.ConversationResponse(
        conversation=convo_schemas.ConversationDetail.from_conversation(conversation)
    )
