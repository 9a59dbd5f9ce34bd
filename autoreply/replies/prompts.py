"""Prompt construction for personalised auto-replies."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..connections.models import PersonalizationProfile, Platform
from ..contacts.models import ContactProfile
from ..conversations.models import ConversationMessage, Direction


class ReplyPromptBuilder:
    """Render the single instruction prompt sent to the completion provider."""

    _PLATFORM_TONES: Mapping[Platform, str] = {
        Platform.WHATSAPP: "Keep it short and casual, like a text message.",
        Platform.INSTAGRAM: "Keep it short, friendly and conversational.",
        Platform.TELEGRAM: "Keep it short and conversational.",
        Platform.SLACK: "Keep it concise and work-appropriate.",
        Platform.LINKEDIN: "Keep it professional and courteous.",
        Platform.EMAIL: "Write a brief, polite email reply without a subject line.",
    }

    def __init__(self, extra_tones: Mapping[Platform, str] | None = None):
        self._tones = dict(self._PLATFORM_TONES)
        if extra_tones:
            self._tones.update(extra_tones)

    @staticmethod
    def render_transcript(messages: Sequence[ConversationMessage]) -> str:
        lines = []
        for message in messages:
            speaker = "You" if message.direction is Direction.OUTGOING else "Contact"
            lines.append(f"{speaker}: {message.text}")
        return "\n".join(lines)

    @staticmethod
    def render_contact(contact: ContactProfile) -> str:
        template = contact.template
        lines = [f"About the contact ({contact.role.value}):"]
        if contact.name:
            lines.append(f"- Name: {contact.name}")
        if contact.their_position:
            lines.append(f"- Their position: {contact.their_position}")
        if contact.relationship:
            lines.append(f"- Relationship: {contact.relationship}")
        lines.append(f"- Style with them: {template.style}. Tone: {template.tone}.")
        lines.extend(f"- {item}" for item in template.guidance)
        if contact.context_notes:
            lines.append(f"- Notes: {contact.context_notes}")
        if contact.custom_instructions:
            lines.append(f"Instructions for this contact: {contact.custom_instructions}")
        return "\n".join(lines)

    def build(
        self,
        context_messages: Sequence[ConversationMessage],
        profile: PersonalizationProfile,
        latest_message: str,
        platform: Platform | None = None,
        contact: ContactProfile | None = None,
    ) -> str:
        sections = [
            f"You are {profile.name}, replying to a message on their behalf.",
            f"Personality: {profile.style}.",
            f"Response style: {profile.response_style}. Tone: {profile.tone}.",
        ]
        if platform is not None and platform in self._tones:
            sections.append(self._tones[platform])
        if profile.custom_instructions:
            sections.append(f"Additional instructions: {profile.custom_instructions}")
        if contact is not None:
            sections.append(self.render_contact(contact))

        transcript = self.render_transcript(context_messages)
        if transcript:
            sections.append(f"Recent conversation:\n{transcript}")
        sections.append(f"Latest message from the contact:\n{latest_message}")
        sections.append(
            f"Reply as {profile.name} would. Respond with the message text only."
        )
        return "\n\n".join(sections)
