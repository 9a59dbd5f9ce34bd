"""Construction of the long-lived service objects shared by all routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from .channels import ChannelAdapter, WebhookSignatureVerifier, build_extractor_registry
from .config import Settings
from .connections.models import Platform
from .connections.registry import CredentialRegistry
from .contacts.directory import ContactDirectory
from .conversations.repository import InMemoryConversationRepository
from .conversations.service import ConversationService
from .dedup import RecentMessageCache
from .dispatch import PlatformDispatcher
from .orchestrator import AutoReplyOrchestrator
from .otp import OtpSessionManager
from .replies import ReplyGenerator


@dataclass
class Services:
    settings: Settings
    registry: CredentialRegistry
    contacts: ContactDirectory
    conversations: ConversationService
    extractors: dict[Platform, ChannelAdapter]
    verifier: WebhookSignatureVerifier
    dedup: RecentMessageCache
    dispatcher: PlatformDispatcher
    generator: ReplyGenerator
    orchestrator: AutoReplyOrchestrator
    otp: OtpSessionManager


def build_services(
    settings: Settings,
    *,
    registry: CredentialRegistry | None = None,
    contacts: ContactDirectory | None = None,
    conversations: ConversationService | None = None,
    dispatcher: PlatformDispatcher | None = None,
    generator: ReplyGenerator | None = None,
) -> Services:
    """Wire the stores, adapters and clients from ``settings``.

    Collaborators passed explicitly replace the defaults, which is how tests
    inject fake HTTP sessions and completion clients.
    """

    registry = registry or CredentialRegistry()
    contacts = contacts or ContactDirectory()
    conversations = conversations or ConversationService(
        InMemoryConversationRepository(max_conversations=settings.conversation_max_count)
    )
    dispatcher = dispatcher or PlatformDispatcher(
        graph_api_url=settings.graph_api_url,
        timeout=settings.dispatch_timeout_seconds,
    )
    generator = generator or ReplyGenerator.from_settings(settings)
    extractors = build_extractor_registry()
    return Services(
        settings=settings,
        registry=registry,
        contacts=contacts,
        conversations=conversations,
        extractors=extractors,
        verifier=WebhookSignatureVerifier(settings, extractors),
        dedup=RecentMessageCache(settings.dedup_ttl_seconds),
        dispatcher=dispatcher,
        generator=generator,
        orchestrator=AutoReplyOrchestrator(
            registry,
            conversations,
            generator,
            dispatcher,
            context_window=settings.context_window,
            contacts=contacts,
        ),
        otp=OtpSessionManager(settings, registry, dispatcher),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services attached to the app."""
    return request.app.state.services
