"""Tests for the in-memory conversation store."""

import threading

import pytest

from autoreply.connections.models import Platform
from autoreply.conversations import ConversationMessage, ConversationNotFoundError, ConversationService
from autoreply.conversations.models import Direction, InboundMessage
from autoreply.conversations.repository import InMemoryConversationRepository


def _incoming(text: str, message_id: str = "m1", sender: str = "contact-1") -> ConversationMessage:
    return ConversationMessage.incoming(
        InboundMessage(
            platform=Platform.WHATSAPP,
            external_message_id=message_id,
            sender_external_id=sender,
            body_text=text,
        )
    )


def test_append_creates_conversation_lazily_and_preserves_order():
    service = ConversationService()

    first = service.append_message("owner", Platform.WHATSAPP, "contact-1", "Alex", _incoming("hi"))
    second = service.append_message(
        "owner", Platform.WHATSAPP, "contact-1", None, ConversationMessage.auto_reply("hello!")
    )

    assert first.id == second.id
    assert [m.text for m in second.messages] == ["hi", "hello!"]
    assert second.counterparty_display_name == "Alex"
    assert service.count() == 1


def test_conversations_are_keyed_by_platform_and_counterparty():
    service = ConversationService()
    a = service.append_message("owner", Platform.WHATSAPP, "c1", None, _incoming("a"))
    b = service.append_message("owner", Platform.TELEGRAM, "c1", None, _incoming("b"))
    c = service.append_message("owner", Platform.WHATSAPP, "c2", None, _incoming("c"))

    assert len({a.id, b.id, c.id}) == 3
    assert a.counterparty_display_name == "c1"


def test_summary_counts_unread_since_last_outgoing():
    service = ConversationService()
    service.append_message("owner", Platform.WHATSAPP, "c1", "Alex", _incoming("one"))
    service.append_message(
        "owner", Platform.WHATSAPP, "c1", None, ConversationMessage.auto_reply("reply")
    )
    service.append_message("owner", Platform.WHATSAPP, "c1", None, _incoming("two", "m2"))
    service.append_message("owner", Platform.WHATSAPP, "c1", None, _incoming("three", "m3"))

    listing = service.list_conversations("owner")

    assert listing.success is True
    summary = listing.conversations[0]
    assert summary.messageCount == 4
    assert summary.unreadCount == 2
    assert summary.lastMessage.text == "three"
    assert summary.counterpartyName == "Alex"
    assert service.list_conversations("somebody-else").conversations == []


def test_recent_messages_returns_tail():
    service = ConversationService()
    for index in range(8):
        service.append_message(
            "owner", Platform.WHATSAPP, "c1", None, _incoming(f"m{index}", f"id{index}")
        )

    recent = service.recent_messages("owner", Platform.WHATSAPP, "c1", 5)

    assert [m.text for m in recent] == ["m3", "m4", "m5", "m6", "m7"]
    assert all(m.direction is Direction.INCOMING for m in recent)


def test_get_conversation_unknown_id():
    with pytest.raises(ConversationNotFoundError):
        ConversationService().get_conversation("nope")


def test_retention_cap_evicts_least_recently_active():
    service = ConversationService(InMemoryConversationRepository(max_conversations=2))
    oldest = service.append_message("owner", Platform.WHATSAPP, "c1", None, _incoming("1"))
    service.append_message("owner", Platform.WHATSAPP, "c2", None, _incoming("2"))
    # Touch c1 so c2 becomes the least recently active.
    service.append_message("owner", Platform.WHATSAPP, "c1", None, _incoming("1b", "m1b"))
    service.append_message("owner", Platform.WHATSAPP, "c3", None, _incoming("3"))

    assert service.count() == 2
    ids = {s.counterpartyId for s in service.list_conversations("owner").conversations}
    assert ids == {"c1", "c3"}
    assert len(service.get_conversation(oldest.id).messages) == 2


def test_concurrent_first_messages_create_one_conversation():
    service = ConversationService()
    barrier = threading.Barrier(16)
    results = []
    lock = threading.Lock()

    def worker(index: int):
        barrier.wait()
        conversation = service.append_message(
            "owner", Platform.WHATSAPP, "new-contact", None, _incoming(f"m{index}", f"id{index}")
        )
        with lock:
            results.append(conversation.id)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(results)) == 1
    assert service.count() == 1
    assert len(service.get_conversation(results[0]).messages) == 16
