"""Per-platform send-message implementations."""

from __future__ import annotations

import base64
from email.message import EmailMessage

from ..connections.models import Platform
from .base import DispatchResult, FailureKind, PlatformSender

TELEGRAM_API_URL = "https://api.telegram.org"
SLACK_API_URL = "https://slack.com/api"
LINKEDIN_API_URL = "https://api.linkedin.com/v2"
GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1"

_SLACK_AUTH_ERRORS = {"invalid_auth", "not_authed", "account_inactive", "token_revoked"}
_SLACK_RECIPIENT_ERRORS = {"channel_not_found", "user_not_found", "is_archived"}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class WhatsAppSender(PlatformSender):
    platform = Platform.WHATSAPP
    required_credentials = ("access_token", "phone_number_id")

    def __init__(self, graph_api_url: str) -> None:
        self.graph_api_url = graph_api_url.rstrip("/")

    def send(self, session, credentials, recipient, text, *, timeout):
        payload, failure = self._post(
            session,
            f"{self.graph_api_url}/{credentials['phone_number_id']}/messages",
            timeout=timeout,
            headers=_bearer(credentials["access_token"]),
            json={
                "messaging_product": "whatsapp",
                "to": recipient,
                "type": "text",
                "text": {"body": text},
            },
        )
        if failure:
            return failure
        messages = payload.get("messages") or []
        if not messages or not messages[0].get("id"):
            return DispatchResult.failure(FailureKind.TRANSIENT, "missing messages[0].id")
        return DispatchResult.success(messages[0]["id"])


class InstagramSender(PlatformSender):
    platform = Platform.INSTAGRAM
    required_credentials = ("access_token",)

    def __init__(self, graph_api_url: str) -> None:
        self.graph_api_url = graph_api_url.rstrip("/")

    def send(self, session, credentials, recipient, text, *, timeout):
        payload, failure = self._post(
            session,
            f"{self.graph_api_url}/me/messages",
            timeout=timeout,
            params={"access_token": credentials["access_token"]},
            json={"recipient": {"id": recipient}, "message": {"text": text}},
        )
        if failure:
            return failure
        message_id = payload.get("message_id")
        if not message_id:
            return DispatchResult.failure(FailureKind.TRANSIENT, "missing message_id")
        return DispatchResult.success(message_id)


class TelegramSender(PlatformSender):
    platform = Platform.TELEGRAM
    required_credentials = ("bot_token",)

    def send(self, session, credentials, recipient, text, *, timeout):
        payload, failure = self._post(
            session,
            f"{TELEGRAM_API_URL}/bot{credentials['bot_token']}/sendMessage",
            timeout=timeout,
            json={"chat_id": recipient, "text": text},
        )
        if failure:
            return failure
        result = payload.get("result") or {}
        if not payload.get("ok") or "message_id" not in result:
            return DispatchResult.failure(FailureKind.TRANSIENT, payload.get("description"))
        return DispatchResult.success(str(result["message_id"]))


class SlackSender(PlatformSender):
    platform = Platform.SLACK
    required_credentials = ("bot_token",)

    def send(self, session, credentials, recipient, text, *, timeout):
        payload, failure = self._post(
            session,
            f"{SLACK_API_URL}/chat.postMessage",
            timeout=timeout,
            headers=_bearer(credentials["bot_token"]),
            json={"channel": recipient, "text": text},
        )
        if failure:
            return failure
        if not payload.get("ok"):
            error = payload.get("error") or "unknown_error"
            if error in _SLACK_AUTH_ERRORS:
                kind = FailureKind.AUTH
            elif error in _SLACK_RECIPIENT_ERRORS:
                kind = FailureKind.INVALID_RECIPIENT
            elif error == "ratelimited":
                kind = FailureKind.RATE_LIMITED
            else:
                kind = FailureKind.TRANSIENT
            return DispatchResult.failure(kind, error)
        return DispatchResult.success(payload.get("ts"))


class LinkedInSender(PlatformSender):
    """Open a conversation with the recipient, then post the text into it."""

    platform = Platform.LINKEDIN
    required_credentials = ("access_token", "person_id")

    def send(self, session, credentials, recipient, text, *, timeout):
        headers = {
            **_bearer(credentials["access_token"]),
            "X-Restli-Protocol-Version": "2.0.0",
        }
        conversation, failure = self._post(
            session,
            f"{LINKEDIN_API_URL}/conversations",
            timeout=timeout,
            headers=headers,
            json={"recipients": [recipient], "subject": "Auto-reply"},
        )
        if failure:
            return failure
        conversation_id = conversation.get("id")
        if not conversation_id:
            return DispatchResult.failure(FailureKind.TRANSIENT, "missing conversation id")
        event, failure = self._post(
            session,
            f"{LINKEDIN_API_URL}/conversations/{conversation_id}/events",
            timeout=timeout,
            headers=headers,
            json={"from": credentials["person_id"], "body": text},
        )
        if failure:
            return failure
        return DispatchResult.success(event.get("id") or conversation_id)


class EmailSender(PlatformSender):
    """Send through the Gmail API as a base64url-encoded RFC 822 message."""

    platform = Platform.EMAIL
    required_credentials = ("access_token", "email_address")

    def send(self, session, credentials, recipient, text, *, timeout):
        message = EmailMessage()
        message["From"] = credentials["email_address"]
        message["To"] = recipient
        message["Subject"] = credentials.get("reply_subject") or "Re: your message"
        message.set_content(text)
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")

        payload, failure = self._post(
            session,
            f"{GMAIL_API_URL}/users/me/messages/send",
            timeout=timeout,
            headers=_bearer(credentials["access_token"]),
            json={"raw": raw},
        )
        if failure:
            return failure
        message_id = payload.get("id")
        if not message_id:
            return DispatchResult.failure(FailureKind.TRANSIENT, "missing id")
        return DispatchResult.success(message_id)


def default_senders(graph_api_url: str) -> dict[Platform, PlatformSender]:
    senders: list[PlatformSender] = [
        WhatsAppSender(graph_api_url),
        InstagramSender(graph_api_url),
        TelegramSender(),
        SlackSender(),
        LinkedInSender(),
        EmailSender(),
    ]
    return {sender.platform: sender for sender in senders}


__all__ = [
    "EmailSender",
    "InstagramSender",
    "LinkedInSender",
    "SlackSender",
    "TelegramSender",
    "WhatsAppSender",
    "default_senders",
]
