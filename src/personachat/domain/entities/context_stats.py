"""Context statistics entities."""

from dataclasses import dataclass
from enum import Enum


class ConversationState(Enum):
    """Lifecycle state of a conversation engine."""

    FRESH = "fresh"
    ACTIVE = "active"
    PENDING = "pending"


@dataclass(frozen=True)
class ContextStats:
    """Aggregate statistics for a conversation.

    Attributes:
        message_count: Number of messages, system message included.
        total_tokens: Estimated tokens of the whole history.
        oldest_message_age: Age in minutes of the oldest non-system message.
        remaining_token_capacity: ``max_tokens - total_tokens``. Not clamped,
            so it goes negative when history overshoots the budget.
    """

    message_count: int
    total_tokens: int
    oldest_message_age: int
    remaining_token_capacity: int


@dataclass(frozen=True)
class ProviderContextStats:
    """Token usage measured against the provider's model limit.

    Attributes:
        total_tokens: Tokens as counted by the provider adapter.
        remaining_capacity: ``max(0, limit - reserved - total)``.
    """

    total_tokens: int
    remaining_capacity: int
