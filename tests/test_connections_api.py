"""HTTP tests for connection management and conversation history."""

from autoreply.connections.models import Platform
from autoreply.conversations import ConversationMessage

OWNER = "user-1"


def _upsert(client, **overrides):
    payload = {
        "userId": OWNER,
        "platform": "whatsapp",
        "credentials": {"access_token": "tok", "phone_number_id": "PNID1"},
        "personalization": {"name": "Dana", "responseStyle": "brief"},
    }
    payload.update(overrides)
    return client.post("/api/connections", json=payload)


def test_upsert_and_list_redacts_credentials(client, services):
    resp = _upsert(client)
    assert resp.status_code == 200
    connection = resp.json()["connection"]
    assert connection["autoReplyEnabled"] is True
    assert connection["credentials"] == {"access_token": "***", "phone_number_id": "***"}

    stored = services.registry.get(OWNER, Platform.WHATSAPP)
    assert stored.credentials["access_token"] == "tok"
    assert stored.personalization.name == "Dana"
    assert stored.personalization.response_style == "brief"

    listing = client.get(f"/api/user/{OWNER}/platforms").json()
    assert listing["success"] is True
    assert [p["platform"] for p in listing["platforms"]] == ["whatsapp"]


def test_upsert_rejects_unknown_platform(client):
    assert _upsert(client, platform="fax").status_code == 400


def test_toggle_flips_and_sets(client, services):
    _upsert(client)

    flipped = client.post(f"/api/user/{OWNER}/platform/whatsapp/toggle")
    assert flipped.json() == {"success": True, "enabled": False}

    explicit = client.post(
        f"/api/user/{OWNER}/platform/whatsapp/toggle", json={"enabled": True}
    )
    assert explicit.json()["enabled"] is True
    assert services.registry.get(OWNER, Platform.WHATSAPP).auto_reply_enabled is True

    missing = client.post(f"/api/user/{OWNER}/platform/slack/toggle")
    assert missing.status_code == 404


def test_disconnect(client, services):
    _upsert(client)

    assert client.delete(f"/api/user/{OWNER}/platform/whatsapp").json() == {"success": True}
    assert services.registry.get(OWNER, Platform.WHATSAPP) is None
    assert client.delete(f"/api/user/{OWNER}/platform/whatsapp").status_code == 404


def test_conversation_endpoints(client, services):
    conversation = services.conversations.append_message(
        OWNER, Platform.TELEGRAM, "99", "Sam", ConversationMessage.auto_reply("hello")
    )

    listing = client.get(f"/api/conversations/{OWNER}").json()
    assert listing["conversations"][0]["id"] == conversation.id
    assert listing["conversations"][0]["platform"] == "telegram"

    detail = client.get(f"/api/conversation/{conversation.id}")
    assert detail.status_code == 200
    body = detail.json()["conversation"]
    assert body["counterpartyName"] == "Sam"
    assert body["messages"][0]["direction"] == "outgoing"

    assert client.get("/api/conversation/unknown").status_code == 404
