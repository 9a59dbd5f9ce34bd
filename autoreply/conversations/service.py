"""Conversation store operations used by the orchestrator and the API."""

from __future__ import annotations

import logging

from ..connections.models import Platform
from . import schemas
from .models import Conversation, ConversationKey, ConversationMessage
from .repository import ConversationRepository, InMemoryConversationRepository

logger = logging.getLogger(__name__)


class ConversationNotFoundError(LookupError):
    """Raised when a conversation id is unknown."""


class ConversationService:
    """Append-only conversation history keyed by owner, counterparty and platform."""

    def __init__(self, repository: ConversationRepository | None = None) -> None:
        self._repository = repository or InMemoryConversationRepository()

    def append_message(
        self,
        owner_user_id: str,
        platform: Platform,
        counterparty_external_id: str,
        counterparty_display_name: str | None,
        message: ConversationMessage,
    ) -> Conversation:
        """Create the conversation if needed, then append ``message``."""

        key = ConversationKey(owner_user_id, counterparty_external_id, platform)
        conversation = self._repository.append(key, counterparty_display_name, message)
        logger.debug(
            "Appended %s message to conversation %s", message.direction.value, conversation.id
        )
        return conversation

    def recent_messages(
        self,
        owner_user_id: str,
        platform: Platform,
        counterparty_external_id: str,
        limit: int,
    ) -> list[ConversationMessage]:
        key = ConversationKey(owner_user_id, counterparty_external_id, platform)
        return self._repository.recent_messages(key, limit)

    def list_conversations(self, owner_user_id: str) -> schemas.ConversationList:
        items = [
            schemas.ConversationSummary.from_conversation(conversation)
            for conversation in self._repository.list_for_owner(owner_user_id)
        ]
        return schemas.ConversationList(conversations=items)

    def get_conversation(self, conversation_id: str) -> Conversation:
        conversation = self._repository.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def count(self) -> int:
        return self._repository.count()
