"""Tests for the per-platform message extractors."""

import pytest

from autoreply.channels import build_extractor_registry
from autoreply.channels.whatsapp import WhatsAppAdapter
from autoreply.connections.models import Platform
from autoreply.conversations.models import MessageType

from conftest import whatsapp_text_payload


@pytest.fixture
def extractors():
    return build_extractor_registry()


def test_registry_covers_every_platform(extractors):
    assert set(extractors) == set(Platform)
    assert isinstance(extractors[Platform.WHATSAPP], WhatsAppAdapter)


def test_whatsapp_text_message(extractors):
    inbound = extractors[Platform.WHATSAPP].extract(
        whatsapp_text_payload("Hey, are you free tomorrow?")
    )

    assert inbound is not None
    assert inbound.platform is Platform.WHATSAPP
    assert inbound.external_message_id == "wamid.IN1"
    assert inbound.sender_external_id == "15551234567"
    assert inbound.sender_display_name == "Alex"
    assert inbound.body_text == "Hey, are you free tomorrow?"
    assert inbound.message_type is MessageType.TEXT
    assert inbound.received_at_epoch_ms == 1_700_000_000_000
    assert inbound.recipient_external_id == "PNID1"


def test_whatsapp_image_becomes_placeholder(extractors):
    payload = whatsapp_text_payload("ignored")
    message = payload["entry"][0]["changes"][0]["value"]["messages"][0]
    message["type"] = "image"
    message.pop("text")
    message["image"] = {"id": "media-1"}

    inbound = extractors[Platform.WHATSAPP].extract(payload)

    assert inbound.body_text == "[Image message]"
    assert inbound.message_type is MessageType.MEDIA
    assert not inbound.is_actionable_text


def test_whatsapp_unknown_type_is_unsupported(extractors):
    payload = whatsapp_text_payload("ignored")
    payload["entry"][0]["changes"][0]["value"]["messages"][0]["type"] = "reaction"

    inbound = extractors[Platform.WHATSAPP].extract(payload)

    assert inbound.body_text == "[Unsupported message type]"
    assert inbound.message_type is MessageType.UNKNOWN


def test_whatsapp_status_callback_yields_nothing(extractors):
    payload = {
        "entry": [
            {"changes": [{"value": {"statuses": [{"id": "wamid.OUT1", "status": "read"}]}}]}
        ]
    }
    assert extractors[Platform.WHATSAPP].extract(payload) is None


def test_malformed_payload_is_logged_and_ignored(extractors, caplog):
    with caplog.at_level("WARNING", logger="autoreply.channels.base"):
        assert extractors[Platform.WHATSAPP].extract({"entry": "nope"}) is None
    assert "Ignoring malformed whatsapp payload" in caplog.text


def test_instagram_text_and_echo(extractors):
    payload = {
        "object": "instagram",
        "entry": [
            {
                "id": "IGPAGE",
                "messaging": [
                    {
                        "sender": {"id": "IGUSER"},
                        "recipient": {"id": "IGPAGE"},
                        "timestamp": 1700000000123,
                        "message": {"mid": "m_1", "text": "love the post"},
                    }
                ],
            }
        ],
    }
    adapter = extractors[Platform.INSTAGRAM]

    inbound = adapter.extract(payload)
    assert inbound.external_message_id == "m_1"
    assert inbound.sender_external_id == "IGUSER"
    assert inbound.recipient_external_id == "IGPAGE"
    assert inbound.received_at_epoch_ms == 1700000000123

    payload["entry"][0]["messaging"][0]["message"]["is_echo"] = True
    assert adapter.extract(payload) is None


def test_instagram_attachment(extractors):
    payload = {
        "entry": [
            {
                "messaging": [
                    {
                        "sender": {"id": "IGUSER"},
                        "recipient": {"id": "IGPAGE"},
                        "message": {"mid": "m_2", "attachments": [{"type": "video"}]},
                    }
                ],
            }
        ],
    }
    inbound = extractors[Platform.INSTAGRAM].extract(payload)
    assert inbound.body_text == "[Video message]"
    assert inbound.message_type is MessageType.MEDIA


def test_telegram_message_and_voice(extractors):
    adapter = extractors[Platform.TELEGRAM]
    payload = {
        "update_id": 10,
        "message": {
            "message_id": 77,
            "date": 1700000000,
            "chat": {"id": 4242, "type": "private"},
            "from": {"id": 4242, "first_name": "Sam", "last_name": "Lee"},
            "text": "ping",
        },
    }

    inbound = adapter.extract(payload)
    assert inbound.sender_external_id == "4242"
    assert inbound.sender_display_name == "Sam Lee"
    assert inbound.external_message_id == "4242:77"
    assert inbound.body_text == "ping"

    del payload["message"]["text"]
    payload["message"]["voice"] = {"file_id": "abc"}
    voice = adapter.extract(payload)
    assert voice.body_text == "[Voice message]"


def test_slack_message_filters_bots_and_subtypes(extractors):
    adapter = extractors[Platform.SLACK]
    payload = {
        "type": "event_callback",
        "team_id": "T1",
        "event": {
            "type": "message",
            "user": "U123",
            "text": "quick question",
            "ts": "1700000000.000100",
            "channel": "D1",
        },
    }

    inbound = adapter.extract(payload)
    assert inbound.sender_external_id == "U123"
    assert inbound.external_message_id == "1700000000.000100"
    assert inbound.received_at_epoch_ms == 1700000000000

    payload["event"]["bot_id"] = "B1"
    assert adapter.extract(payload) is None

    del payload["event"]["bot_id"]
    payload["event"]["subtype"] = "message_changed"
    assert adapter.extract(payload) is None


def test_linkedin_relay_shape(extractors):
    inbound = extractors[Platform.LINKEDIN].extract(
        {"id": "li-1", "from": "urn:li:person:abc", "fromName": "Jo", "message": "Hello"}
    )
    assert inbound.external_message_id == "li-1"
    assert inbound.sender_display_name == "Jo"
    assert inbound.body_text == "Hello"


def test_numeric_recipient_ids_become_strings(extractors):
    inbound = extractors[Platform.LINKEDIN].extract(
        {"id": "li-2", "from": "alice", "message": "hi", "to": 12345}
    )
    assert inbound.recipient_external_id == "12345"

    inbound = extractors[Platform.INSTAGRAM].extract(
        {
            "entry": [
                {
                    "messaging": [
                        {
                            "sender": {"id": 111},
                            "recipient": {"id": 17841400000},
                            "timestamp": 1700000000000,
                            "message": {"mid": "m-9", "text": "yo"},
                        }
                    ]
                }
            ]
        }
    )
    assert inbound.sender_external_id == "111"
    assert inbound.recipient_external_id == "17841400000"


def test_linkedin_requires_sender(extractors):
    assert extractors[Platform.LINKEDIN].extract({"message": "Hello"}) is None


def test_email_relay_shape(extractors):
    inbound = extractors[Platform.EMAIL].extract(
        {
            "messageId": "<abc@mail>",
            "from": "Pat Doe <Pat@Example.com>",
            "to": "me@example.com",
            "subject": "Lunch",
            "body": "Are we still on?",
        }
    )
    assert inbound.sender_external_id == "pat@example.com"
    assert inbound.sender_display_name == "Pat Doe"
    assert inbound.recipient_external_id == "me@example.com"
    assert inbound.body_text == "Subject: Lunch\n\nAre we still on?"
