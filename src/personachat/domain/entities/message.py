"""Message entity."""

import time
from dataclasses import dataclass, replace
from enum import Enum


class Role(str, Enum):
    """Speaker of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def current_timestamp_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Message:
    """One turn in a conversation.

    Attributes:
        role: Who produced the turn.
        content: Message text.
        timestamp: Creation time in epoch milliseconds. Only legacy records
            lack it; such messages are dropped by the age filter.
        token_count: Cached token estimate. Recomputed when absent.
    """

    role: Role
    content: str
    timestamp: int | None = None
    token_count: int | None = None

    @property
    def is_system(self) -> bool:
        """Check if this is the system message."""
        return self.role == Role.SYSTEM

    def without_token_count(self) -> "Message":
        """Return a copy with the cached token count dropped."""
        return replace(self, token_count=None)
