"""Persisted state entities."""

from dataclasses import dataclass, field
from datetime import datetime

from personachat.domain.entities.message import Message
from personachat.domain.entities.provider import ConversationId


@dataclass(frozen=True)
class SavedConversation:
    """Stored message history of one conversation.

    Attributes:
        conversation_id: Conversation identity.
        messages: Messages in chronological order, system message first.
        saved_at: When the record was last written.
    """

    conversation_id: ConversationId
    messages: list[Message]
    saved_at: datetime


@dataclass(frozen=True)
class RegistryState:
    """Envelope for restoring the whole registry.

    Attributes:
        conversations: Identities of the open conversations, in open order.
        selected_id: Conversation selected when the state was saved.
        last_persona: Handle of the last selected persona.
    """

    conversations: list[ConversationId] = field(default_factory=list)
    selected_id: ConversationId | None = None
    last_persona: str | None = None
