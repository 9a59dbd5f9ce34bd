"""Pydantic schemas for conversation APIs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .models import Conversation, ConversationMessage


class MessageView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    direction: str
    text: str
    timestamp: datetime
    isAutoReply: bool
    externalMessageId: str | None = None

    @classmethod
    def from_message(cls, message: ConversationMessage) -> "MessageView":
        return cls(
            id=message.id,
            direction=message.direction.value,
            text=message.text,
            timestamp=message.timestamp,
            isAutoReply=message.is_auto_reply,
            externalMessageId=message.external_message_id,
        )


class ConversationSummary(BaseModel):
    id: str
    platform: str
    counterpartyId: str
    counterpartyName: str
    lastMessage: MessageView | None = None
    messageCount: int
    unreadCount: int

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationSummary":
        messages = list(conversation.messages)
        last = messages[-1] if messages else None
        return cls(
            id=conversation.id,
            platform=conversation.platform.value,
            counterpartyId=conversation.counterparty_external_id,
            counterpartyName=conversation.counterparty_display_name,
            lastMessage=MessageView.from_message(last) if last else None,
            messageCount=len(messages),
            unreadCount=conversation.unread_count,
        )


class ConversationList(BaseModel):
    success: bool = True
    conversations: list[ConversationSummary]


class ConversationDetail(BaseModel):
    id: str
    ownerUserId: str
    platform: str
    counterpartyId: str
    counterpartyName: str
    messages: list[MessageView]

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationDetail":
        return cls(
            id=conversation.id,
            ownerUserId=conversation.owner_user_id,
            platform=conversation.platform.value,
            counterpartyId=conversation.counterparty_external_id,
            counterpartyName=conversation.counterparty_display_name,
            messages=[MessageView.from_message(m) for m in list(conversation.messages)],
        )


class ConversationResponse(BaseModel):
    success: bool = True
    conversation: ConversationDetail
