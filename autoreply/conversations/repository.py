"""In-memory repository for conversations."""
from __future__ import annotations

import threading
from collections import OrderedDict
from typing import List, Optional, Protocol

from ..core.locks import StripedLock
from .models import Conversation, ConversationKey, ConversationMessage


class ConversationRepository(Protocol):
    """Abstraction for persisting conversation history."""

    def append(
        self,
        key: ConversationKey,
        display_name: str | None,
        message: ConversationMessage,
    ) -> Conversation: ...

    def get(self, conversation_id: str) -> Optional[Conversation]: ...

    def get_by_key(self, key: ConversationKey) -> Optional[Conversation]: ...

    def list_for_owner(self, owner_user_id: str) -> List[Conversation]: ...

    def recent_messages(self, key: ConversationKey, limit: int) -> List[ConversationMessage]: ...

    def count(self) -> int: ...


class InMemoryConversationRepository(ConversationRepository):
    """Process-local store guarded by a striped lock table.

    Lookup-or-create and append for one key run under that key's stripe, so
    concurrent first messages from a new counterparty produce one
    conversation. When ``max_conversations`` is exceeded the least recently
    active conversation is evicted.
    """

    def __init__(self, *, max_conversations: int = 10_000, stripes: int = 64) -> None:
        self._stripes = StripedLock(stripes)
        self._index_lock = threading.Lock()
        self._by_key: "OrderedDict[ConversationKey, Conversation]" = OrderedDict()
        self._by_id: dict[str, Conversation] = {}
        self._max = max_conversations

    def append(
        self,
        key: ConversationKey,
        display_name: str | None,
        message: ConversationMessage,
    ) -> Conversation:
        with self._stripes.for_key(key):
            with self._index_lock:
                conversation = self._by_key.get(key)
                if conversation is None:
                    conversation = Conversation(
                        key=key,
                        counterparty_display_name=display_name or key.counterparty_external_id,
                    )
                    self._by_key[key] = conversation
                    self._by_id[conversation.id] = conversation
                    self._evict_locked()
                else:
                    self._by_key.move_to_end(key)
            if display_name and conversation.counterparty_display_name != display_name:
                conversation.counterparty_display_name = display_name
            conversation.messages.append(message)
            return conversation

    def _evict_locked(self) -> None:
        while len(self._by_key) > self._max:
            _, evicted = self._by_key.popitem(last=False)
            self._by_id.pop(evicted.id, None)

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._index_lock:
            return self._by_id.get(conversation_id)

    def get_by_key(self, key: ConversationKey) -> Optional[Conversation]:
        with self._index_lock:
            return self._by_key.get(key)

    def list_for_owner(self, owner_user_id: str) -> List[Conversation]:
        with self._index_lock:
            return [c for k, c in self._by_key.items() if k.owner_user_id == owner_user_id]

    def recent_messages(self, key: ConversationKey, limit: int) -> List[ConversationMessage]:
        with self._stripes.for_key(key):
            conversation = self.get_by_key(key)
            if conversation is None or limit <= 0:
                return []
            return list(conversation.messages[-limit:])

    def count(self) -> int:
        with self._index_lock:
            return len(self._by_key)
