"""Conversation engine for one persona/provider/model."""

import logging

from personachat.domain.entities import (
    ContextStats,
    ConversationConfig,
    ConversationId,
    ConversationState,
    Message,
    PersonaConfig,
    ProviderContextStats,
    Role,
    current_timestamp_ms,
)
from personachat.domain.repositories import ConversationRepository
from personachat.domain.services import (
    ProviderAdapter,
    SystemPromptBuilder,
    estimate_tokens,
    optimize_context,
)

logger = logging.getLogger(__name__)


class PersonaConversation:
    """One persona's chat session against one provider and model.

    Owns the message history. Every mutation is persisted immediately
    through the conversation repository. Provider errors propagate to the
    caller and the user turn that triggered them stays in the history.
    """

    def __init__(
        self,
        conversation_id: ConversationId,
        provider: ProviderAdapter,
        persona: PersonaConfig,
        repository: ConversationRepository,
        config: ConversationConfig | None = None,
        messages: list[Message] | None = None,
    ) -> None:
        """Initialize without touching storage.

        Use ``create`` to load or synthesize the history.

        Args:
            conversation_id: Conversation identity.
            provider: Provider adapter bound to the conversation's model.
            persona: Persona profile.
            repository: Conversation history repository.
            config: Eviction policy.
            messages: Initial history, system message first.
        """
        self._id = conversation_id
        self._provider = provider
        self._persona = persona
        self._repository = repository
        self._config = config or ConversationConfig()
        self._messages: list[Message] = list(messages or [])
        self._total_tokens = provider.total_tokens(self._messages)
        self._pending = False
        # Bumped by clear_history. Replies from an older generation are dropped.
        self._generation = 0

    @classmethod
    async def create(
        cls,
        provider: ProviderAdapter,
        persona: PersonaConfig,
        repository: ConversationRepository,
        prompt_builder: SystemPromptBuilder,
        config: ConversationConfig | None = None,
    ) -> "PersonaConversation":
        """Open a conversation, resuming persisted history when present.

        Args:
            provider: Provider adapter.
            persona: Persona profile.
            repository: Conversation history repository.
            prompt_builder: Renders the system prompt for a fresh history.
            config: Eviction policy.

        Returns:
            Conversation in the fresh or active state.
        """
        conversation_id = ConversationId(
            persona_handle=persona.handle,
            provider=provider.provider_type,
            model=provider.model,
        )

        saved = await repository.load(conversation_id)
        if saved is not None and saved.messages and saved.messages[0].is_system:
            logger.info(
                "Resumed conversation %s (%d messages)",
                conversation_id,
                len(saved.messages),
            )
            return cls(
                conversation_id, provider, persona, repository, config, saved.messages
            )
        if saved is not None:
            logger.warning(
                "Saved history for %s has no system message, starting fresh",
                conversation_id,
            )

        system_prompt = prompt_builder.build(persona)
        system_message = Message(
            role=Role.SYSTEM,
            content=system_prompt,
            timestamp=current_timestamp_ms(),
            token_count=estimate_tokens(system_prompt),
        )
        conversation = cls(
            conversation_id, provider, persona, repository, config, [system_message]
        )
        await conversation._persist()
        logger.info("Started conversation %s", conversation_id)
        return conversation

    @property
    def conversation_id(self) -> ConversationId:
        return self._id

    @property
    def persona(self) -> PersonaConfig:
        return self._persona

    @property
    def provider(self) -> ProviderAdapter:
        return self._provider

    @property
    def config(self) -> ConversationConfig:
        return self._config

    @property
    def total_tokens(self) -> int:
        return self._total_tokens

    @property
    def system_prompt(self) -> str:
        """Content of the system message ("" for a degenerate history)."""
        if self._messages and self._messages[0].is_system:
            return self._messages[0].content
        return ""

    @property
    def is_pending(self) -> bool:
        return self._pending

    @property
    def state(self) -> ConversationState:
        """Current lifecycle state."""
        if self._pending:
            return ConversationState.PENDING
        if len(self._messages) <= 1:
            return ConversationState.FRESH
        return ConversationState.ACTIVE

    def append_history(self, messages: list[Message]) -> None:
        """Append stored messages as-is, bypassing the optimizer.

        Used when replaying persisted history on restore.
        """
        self._messages.extend(messages)
        self._total_tokens = self._provider.total_tokens(self._messages)

    async def send_message(self, text: str) -> str | None:
        """Send a user turn and return the assistant reply.

        Empty or whitespace-only text, and calls made while another send is
        in flight, are rejected without side effects. A reply that arrives
        after ``clear_history`` ran is discarded.

        Args:
            text: User message.

        Returns:
            Assistant reply, or None if the call was rejected or the history
            was cleared while waiting.

        Raises:
            ProviderError: The provider call failed. The user message stays
                in the history.
        """
        if not text or not text.strip():
            logger.debug("Ignoring empty message for %s", self._id)
            return None
        if self._pending:
            logger.warning("Send already in flight for %s, rejecting", self._id)
            return None

        # No await between the check above and setting the flag.
        self._messages.append(
            Message(
                role=Role.USER,
                content=text,
                timestamp=current_timestamp_ms(),
                token_count=estimate_tokens(text),
            )
        )
        self._pending = True
        generation = self._generation
        try:
            await self._optimize()
            if generation != self._generation:
                logger.info("History of %s cleared before sending", self._id)
                return None
            response = await self._provider.send(
                list(self._messages),
                self.system_prompt,
                self._config.reserved_tokens,
            )
            if generation != self._generation:
                logger.info("Discarding reply for cleared history of %s", self._id)
                return None
            self._messages.append(
                Message(
                    role=Role.ASSISTANT,
                    content=response,
                    timestamp=current_timestamp_ms(),
                    token_count=estimate_tokens(response),
                )
            )
            await self._optimize()
            return response
        finally:
            self._pending = False

    def context_stats(self) -> ContextStats:
        """Message count, token usage and age of the oldest turn."""
        oldest_age = 0
        if len(self._messages) > 1 and self._messages[1].timestamp is not None:
            oldest_age = (current_timestamp_ms() - self._messages[1].timestamp) // 60000
        return ContextStats(
            message_count=len(self._messages),
            total_tokens=self._total_tokens,
            oldest_message_age=oldest_age,
            remaining_token_capacity=self._config.max_tokens - self._total_tokens,
        )

    async def provider_context_stats(self) -> ProviderContextStats:
        """Usage measured against the provider-reported model limit."""
        return await self._provider.context_stats(self._messages, self._config)

    async def clear_history(self) -> None:
        """Reset to the system message and drop the persisted record.

        A send in flight keeps running, but its reply is discarded.
        """
        self._generation += 1
        self._messages = self._messages[:1]
        self._total_tokens = self._provider.total_tokens(self._messages)
        await self._repository.delete(self._id)
        logger.info("Cleared history of %s", self._id)

    def get_messages(self) -> list[Message]:
        """Full history including the system message."""
        return list(self._messages)

    def display_messages(self) -> list[Message]:
        """History without the system message."""
        return [m for m in self._messages if not m.is_system]

    async def _optimize(self) -> None:
        self._messages = optimize_context(
            self._messages,
            self._config,
            count_tokens=self._provider.total_tokens,
        )
        self._total_tokens = self._provider.total_tokens(self._messages)
        await self._persist()

    async def _persist(self) -> None:
        await self._repository.save(self._id, self._messages)
