"""Domain entities."""

from personachat.domain.entities.context_stats import (
    ContextStats,
    ConversationState,
    ProviderContextStats,
)
from personachat.domain.entities.conversation_config import ConversationConfig
from personachat.domain.entities.message import Message, Role, current_timestamp_ms
from personachat.domain.entities.persona import PersonaConfig
from personachat.domain.entities.provider import (
    ConversationId,
    ProviderConfig,
    ProviderType,
)
from personachat.domain.entities.saved_state import RegistryState, SavedConversation

__all__ = [
    "ContextStats",
    "ConversationConfig",
    "ConversationId",
    "ConversationState",
    "Message",
    "PersonaConfig",
    "ProviderConfig",
    "ProviderContextStats",
    "ProviderType",
    "RegistryState",
    "Role",
    "SavedConversation",
    "current_timestamp_ms",
]
