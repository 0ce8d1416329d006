"""Persistence infrastructure."""

from personachat.infrastructure.persistence.conversation_repository import (
    SQLiteConversationRepository,
)
from personachat.infrastructure.persistence.credential_store import (
    SQLiteCredentialStore,
)
from personachat.infrastructure.persistence.database import DatabaseManager
from personachat.infrastructure.persistence.exceptions import (
    PersistenceError,
    StorageCorruptionError,
)
from personachat.infrastructure.persistence.models import (
    ConversationModel,
    CredentialModel,
    RegistryStateModel,
)
from personachat.infrastructure.persistence.registry_state_repository import (
    SQLiteRegistryStateRepository,
)

__all__ = [
    "ConversationModel",
    "CredentialModel",
    "DatabaseManager",
    "PersistenceError",
    "RegistryStateModel",
    "SQLiteConversationRepository",
    "SQLiteCredentialStore",
    "SQLiteRegistryStateRepository",
    "StorageCorruptionError",
]
