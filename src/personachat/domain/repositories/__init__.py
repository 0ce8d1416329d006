"""Domain repositories."""

from personachat.domain.repositories.conversation_repository import (
    ConversationRepository,
)
from personachat.domain.repositories.credential_store import CredentialStore
from personachat.domain.repositories.registry_state_repository import (
    RegistryStateRepository,
)

__all__ = [
    "ConversationRepository",
    "CredentialStore",
    "RegistryStateRepository",
]
