import hashlib
import hmac
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from autoreply.config import Settings, reset_settings_cache
from autoreply.connections.registry import CredentialRegistry
from autoreply.core.rate_limit import limiter
from autoreply.dispatch import PlatformDispatcher
from autoreply.replies import ReplyGenerator
from autoreply.runtime import build_services


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200):
        self._payload = payload if payload is not None else {}
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records outbound requests and replays queued responses."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self._responses = list(responses or [])
        self.requests: List[Dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self._responses.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self._responses:
            raise AssertionError("no more responses queued")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeCompletions:
    def __init__(self, replies: List[Any]):
        self._replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any):
        self.calls.append(kwargs)
        reply = self._replies.pop(0) if self._replies else "Sure, sounds good!"
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )


class FakeCompletionClient:
    def __init__(self, *replies: Any):
        self.completions = FakeCompletions(list(replies))
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.completions.calls


def whatsapp_send_ok(message_id: str = "wamid.OUT1") -> FakeResponse:
    return FakeResponse({"messages": [{"id": message_id}]})


def whatsapp_text_payload(
    text: str,
    *,
    sender: str = "15551234567",
    message_id: str = "wamid.IN1",
    phone_number_id: str = "PNID1",
    name: str = "Alex",
) -> Dict[str, Any]:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA1",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550009999",
                                "phone_number_id": phone_number_id,
                            },
                            "contacts": [{"profile": {"name": name}, "wa_id": sender}],
                            "messages": [
                                {
                                    "from": sender,
                                    "id": message_id,
                                    "timestamp": "1700000000",
                                    "type": "text",
                                    "text": {"body": text},
                                }
                            ],
                        },
                    }
                ],
            }
        ],
    }


def sign(secret: str, body: bytes, prefix: str = "sha256=") -> str:
    return prefix + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def encode(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    reset_settings_cache()
    limiter.reset()
    yield
    reset_settings_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="development",
        webhook_secrets={"whatsapp": "wa-secret", "slack": "slack-secret"},
        webhook_verify_token="verify-me",
        whatsapp_access_token="service-token",
        whatsapp_phone_number_id="SERVICE_PNID",
        operator_token="operator-secret",
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_llm() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def services(settings, fake_session, fake_llm):
    dispatcher = PlatformDispatcher(session=fake_session, graph_api_url=settings.graph_api_url)
    generator = ReplyGenerator.from_settings(settings, client=fake_llm)
    return build_services(
        settings,
        registry=CredentialRegistry(),
        dispatcher=dispatcher,
        generator=generator,
    )


@pytest.fixture
def client(services):
    from autoreply.main import app

    previous = app.state.services
    app.state.services = services
    with TestClient(app) as test_client:
        yield test_client
    app.state.services = previous
