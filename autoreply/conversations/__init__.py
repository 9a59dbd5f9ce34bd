"""Conversation history store and schemas."""

from . import schemas
from .models import (
    Conversation,
    ConversationKey,
    ConversationMessage,
    Direction,
    InboundMessage,
    MessageType,
)
from .service import ConversationNotFoundError, ConversationService

__all__ = [
    "Conversation",
    "ConversationKey",
    "ConversationMessage",
    "ConversationNotFoundError",
    "ConversationService",
    "Direction",
    "InboundMessage",
    "MessageType",
    "schemas",
]
