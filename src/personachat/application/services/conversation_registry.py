"""Registry of live conversations."""

import logging
from dataclasses import dataclass

from personachat.application.services.persona_conversation import PersonaConversation
from personachat.domain.entities import (
    ConversationConfig,
    ConversationId,
    Message,
    PersonaConfig,
    ProviderConfig,
    RegistryState,
)
from personachat.domain.exceptions import (
    ConversationNotFoundError,
    CredentialMissingError,
    PersonaNotFoundError,
)
from personachat.domain.repositories import (
    ConversationRepository,
    CredentialStore,
    RegistryStateRepository,
)
from personachat.domain.services import ProviderAdapter, SystemPromptBuilder
from personachat.infrastructure.catalog import PersonaCatalog
from personachat.infrastructure.llm import ProviderFactory
from personachat.infrastructure.persistence import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationSummary:
    """Per-conversation view for the front end.

    Attributes:
        conversation_id: Conversation identity.
        persona: Persona profile.
        provider_config: Provider and model.
        messages: History without the system message.
    """

    conversation_id: ConversationId
    persona: PersonaConfig
    provider_config: ProviderConfig
    messages: list[Message]


class ConversationRegistry:
    """Owns every live conversation, keyed by composite identity.

    Registry mutations (start, select, delete) update the persisted envelope
    so the whole registry can be rebuilt with ``restore_all`` at startup.
    """

    def __init__(
        self,
        catalog: PersonaCatalog,
        provider_factory: ProviderFactory,
        credential_store: CredentialStore,
        conversation_repository: ConversationRepository,
        state_repository: RegistryStateRepository,
        prompt_builder: SystemPromptBuilder,
        config: ConversationConfig | None = None,
    ) -> None:
        self._catalog = catalog
        self._provider_factory = provider_factory
        self._credential_store = credential_store
        self._conversation_repository = conversation_repository
        self._state_repository = state_repository
        self._prompt_builder = prompt_builder
        self._config = config or ConversationConfig()
        self._conversations: dict[ConversationId, PersonaConversation] = {}
        self._selected_id: ConversationId | None = None
        self._last_persona: str | None = None

    @property
    def selected_id(self) -> ConversationId | None:
        return self._selected_id

    @property
    def selected(self) -> PersonaConversation | None:
        """Currently selected conversation."""
        if self._selected_id is None:
            return None
        return self._conversations.get(self._selected_id)

    @property
    def last_persona(self) -> str | None:
        """Handle of the last selected persona."""
        return self._last_persona

    def get(self, conversation_id: ConversationId) -> PersonaConversation:
        """Conversation by identity.

        Raises:
            ConversationNotFoundError: Not in the registry.
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(str(conversation_id))
        return conversation

    def list_conversations(self) -> list[ConversationSummary]:
        """Summaries of every conversation in open order."""
        return [
            ConversationSummary(
                conversation_id=conversation_id,
                persona=conversation.persona,
                provider_config=conversation_id.provider_config,
                messages=conversation.display_messages(),
            )
            for conversation_id, conversation in self._conversations.items()
        ]

    async def start(
        self, persona: PersonaConfig, provider_config: ProviderConfig
    ) -> PersonaConversation:
        """Open a new conversation engine and select it.

        An engine already registered under the same identity is replaced by
        the new instance, which resumes from the persisted history.

        Args:
            persona: Persona to chat with.
            provider_config: Provider and model.

        Returns:
            The new conversation.

        Raises:
            CredentialMissingError: No API key for the provider.
        """
        provider = await self._build_provider(provider_config)
        conversation = await PersonaConversation.create(
            provider,
            persona,
            self._conversation_repository,
            self._prompt_builder,
            self._config,
        )
        conversation_id = conversation.conversation_id
        if conversation_id in self._conversations:
            logger.info("Replacing open conversation %s", conversation_id)
        self._conversations[conversation_id] = conversation
        self._selected_id = conversation_id
        self._last_persona = persona.handle
        await self._save_state()
        return conversation

    async def select(self, conversation_id: ConversationId) -> PersonaConversation:
        """Make a conversation the active one. Engine state is untouched.

        Raises:
            ConversationNotFoundError: Not in the registry.
        """
        conversation = self.get(conversation_id)
        self._selected_id = conversation_id
        self._last_persona = conversation_id.persona_handle
        await self._save_state()
        return conversation

    async def delete(self, conversation_id: ConversationId) -> None:
        """Remove a conversation. Its persisted history is kept.

        Raises:
            ConversationNotFoundError: Not in the registry.
        """
        self.get(conversation_id)
        del self._conversations[conversation_id]
        if self._selected_id == conversation_id:
            self._selected_id = None
        await self._save_state()
        logger.info("Deleted conversation %s", conversation_id)

    async def restore_all(self) -> int:
        """Rebuild the registry from the persisted envelope.

        Run once at startup, after the persona catalog is loaded. A
        conversation that cannot be rebuilt is skipped and logged.

        Returns:
            Number of conversations restored.
        """
        state = await self._state_repository.load()
        if state is None:
            return 0

        restored = 0
        for conversation_id in state.conversations:
            try:
                conversation = await self._restore_one(conversation_id)
            except (
                CredentialMissingError,
                PersonaNotFoundError,
                PersistenceError,
                ValueError,
            ) as e:
                logger.warning("Skipping conversation %s: %s", conversation_id, e)
                continue
            self._conversations[conversation_id] = conversation
            restored += 1

        if state.selected_id in self._conversations:
            self._selected_id = state.selected_id
        self._last_persona = state.last_persona
        logger.info(
            "Restored %d of %d conversations", restored, len(state.conversations)
        )
        return restored

    async def _restore_one(
        self, conversation_id: ConversationId
    ) -> PersonaConversation:
        persona = self._catalog.require(conversation_id.persona_handle)
        provider = await self._build_provider(conversation_id.provider_config)

        saved = await self._conversation_repository.load(conversation_id)
        if saved is None or not saved.messages or not saved.messages[0].is_system:
            return await PersonaConversation.create(
                provider,
                persona,
                self._conversation_repository,
                self._prompt_builder,
                self._config,
            )

        conversation = PersonaConversation(
            conversation_id,
            provider,
            persona,
            self._conversation_repository,
            self._config,
        )
        conversation.append_history(saved.messages)
        return conversation

    async def _build_provider(self, provider_config: ProviderConfig) -> ProviderAdapter:
        api_key = await self._credential_store.get(provider_config.type)
        if not api_key:
            raise CredentialMissingError(provider_config.type)
        return self._provider_factory.create(provider_config, api_key)

    async def _save_state(self) -> None:
        await self._state_repository.save(
            RegistryState(
                conversations=list(self._conversations),
                selected_id=self._selected_id,
                last_persona=self._last_persona,
            )
        )

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations
