"""Decide whether to answer an inbound message, and answer it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from prometheus_client import Counter

from .connections.models import normalize_identifier
from .connections.registry import CredentialRegistry
from .contacts.directory import ContactDirectory
from .conversations.models import ConversationMessage, InboundMessage
from .conversations.service import ConversationService
from .dispatch import PlatformDispatcher
from .replies.generator import ReplyGenerator

logger = logging.getLogger(__name__)

AUTO_REPLY_OUTCOMES = Counter(
    "autoreply_outcomes_total",
    "Auto-reply decisions by platform and outcome.",
    ["platform", "status"],
)


class OutcomeStatus(str, Enum):
    REPLIED = "replied"
    IGNORED_OWN_MESSAGE = "ignored_own_message"
    NO_CONNECTION = "no_connection"
    AUTO_REPLY_DISABLED = "auto_reply_disabled"
    NOT_ACTIONABLE = "not_actionable"
    GENERATION_FAILED = "generation_failed"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass(frozen=True)
class AutoReplyOutcome:
    status: OutcomeStatus
    reason: str | None = None
    conversation_id: str | None = None
    reply_text: str | None = None
    platform_message_id: str | None = None

    @property
    def replied(self) -> bool:
        return self.status is OutcomeStatus.REPLIED


class AutoReplyOrchestrator:
    """Record an inbound message and, when allowed, send a generated reply.

    Generation and dispatch failures are logged and reported through the
    returned :class:`AutoReplyOutcome`; they never propagate to the caller.
    No store lock is held while the reply is being generated.
    """

    def __init__(
        self,
        registry: CredentialRegistry,
        conversations: ConversationService,
        generator: ReplyGenerator,
        dispatcher: PlatformDispatcher,
        *,
        context_window: int = 5,
        contacts: ContactDirectory | None = None,
    ) -> None:
        self.registry = registry
        self.conversations = conversations
        self.generator = generator
        self.dispatcher = dispatcher
        self.context_window = context_window
        self.contacts = contacts or ContactDirectory()

    def handle_inbound(self, inbound: InboundMessage, owner_user_id: str) -> AutoReplyOutcome:
        outcome = self._handle(inbound, owner_user_id)
        AUTO_REPLY_OUTCOMES.labels(inbound.platform.value, outcome.status.value).inc()
        logger.info(
            "Inbound %s message %s for %s: %s%s",
            inbound.platform.value,
            inbound.external_message_id,
            owner_user_id,
            outcome.status.value,
            f" ({outcome.reason})" if outcome.reason else "",
        )
        return outcome

    def _handle(self, inbound: InboundMessage, owner_user_id: str) -> AutoReplyOutcome:
        platform = inbound.platform
        connection = self.registry.get(owner_user_id, platform)

        sender = normalize_identifier(inbound.sender_external_id)
        own_ids = {normalize_identifier(owner_user_id)}
        if connection is not None:
            own_ids |= connection.account_identifiers()
        if sender in own_ids:
            return AutoReplyOutcome(OutcomeStatus.IGNORED_OWN_MESSAGE)

        if connection is None:
            return AutoReplyOutcome(OutcomeStatus.NO_CONNECTION)
        if not connection.auto_reply_enabled:
            return AutoReplyOutcome(OutcomeStatus.AUTO_REPLY_DISABLED)

        conversation = self.conversations.append_message(
            owner_user_id,
            platform,
            inbound.sender_external_id,
            inbound.sender_display_name,
            ConversationMessage.incoming(inbound),
        )

        if not inbound.is_actionable_text:
            return AutoReplyOutcome(
                OutcomeStatus.NOT_ACTIONABLE,
                reason=inbound.message_type.value,
                conversation_id=conversation.id,
            )

        context = self.conversations.recent_messages(
            owner_user_id, platform, inbound.sender_external_id, self.context_window
        )
        contact = self.contacts.lookup(owner_user_id, platform, inbound.sender_external_id)
        try:
            generation = self.generator.generate(
                context, connection.personalization, inbound.body_text, platform, contact
            )
        except Exception:
            logger.exception("Reply generation raised for %s", inbound.external_message_id)
            return AutoReplyOutcome(
                OutcomeStatus.GENERATION_FAILED,
                reason="error",
                conversation_id=conversation.id,
            )
        if not generation.ok or not generation.text:
            return AutoReplyOutcome(
                OutcomeStatus.GENERATION_FAILED,
                reason=generation.status.value,
                conversation_id=conversation.id,
            )

        # The connection may have been toggled or removed while generating.
        current = self.registry.get(owner_user_id, platform)
        if current is None:
            return AutoReplyOutcome(OutcomeStatus.NO_CONNECTION, conversation_id=conversation.id)
        if not current.auto_reply_enabled:
            return AutoReplyOutcome(
                OutcomeStatus.AUTO_REPLY_DISABLED, conversation_id=conversation.id
            )

        try:
            result = self.dispatcher.send(
                platform, current.credentials, inbound.sender_external_id, generation.text
            )
        except Exception:
            logger.exception("Dispatch raised for %s", inbound.external_message_id)
            return AutoReplyOutcome(
                OutcomeStatus.DISPATCH_FAILED,
                reason="error",
                conversation_id=conversation.id,
                reply_text=generation.text,
            )
        if not result.ok:
            return AutoReplyOutcome(
                OutcomeStatus.DISPATCH_FAILED,
                reason=result.failure_kind.value if result.failure_kind else None,
                conversation_id=conversation.id,
                reply_text=generation.text,
            )

        self.conversations.append_message(
            owner_user_id,
            platform,
            inbound.sender_external_id,
            inbound.sender_display_name,
            ConversationMessage.auto_reply(generation.text, result.platform_message_id),
        )
        return AutoReplyOutcome(
            OutcomeStatus.REPLIED,
            conversation_id=conversation.id,
            reply_text=generation.text,
            platform_message_id=result.platform_message_id,
        )
