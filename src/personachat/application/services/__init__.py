"""Application services."""

from personachat.application.services.conversation_registry import (
    ConversationRegistry,
    ConversationSummary,
)
from personachat.application.services.persona_conversation import PersonaConversation

__all__ = ["ConversationRegistry", "ConversationSummary", "PersonaConversation"]
