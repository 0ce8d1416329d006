"""Domain service protocols."""

from collections.abc import Sequence
from typing import Protocol

from personachat.domain.entities import (
    ConversationConfig,
    Message,
    PersonaConfig,
    ProviderContextStats,
    ProviderType,
)


class ProviderAdapter(Protocol):
    """LLM provider abstraction.

    Implemented once per provider (Anthropic, OpenAI). The adapter is bound to
    a single model at construction.
    """

    provider_type: ProviderType
    model: str

    async def send(
        self,
        messages: Sequence[Message],
        system_prompt: str,
        max_response_tokens: int,
    ) -> str:
        """Send a message window and return the generated text.

        Args:
            messages: Optimized history. System messages are not sent as
                turns; the system prompt travels out of band.
            system_prompt: Persona instruction.
            max_response_tokens: Response token budget.

        Returns:
            Generated text.

        Raises:
            ProviderError: Non-success status, malformed body or transport
                failure.
        """
        ...

    async def model_context_limit(self, model: str | None = None) -> int:
        """Return the context window size for a model (defaults to own)."""
        ...

    def total_tokens(self, messages: Sequence[Message]) -> int:
        """Count tokens of a message window as this provider bills them."""
        ...

    async def context_stats(
        self, messages: Sequence[Message], config: ConversationConfig
    ) -> ProviderContextStats:
        """Token usage against the provider's model limit."""
        ...


class SystemPromptBuilder(Protocol):
    """Builds the system instruction for a persona."""

    def build(self, persona: PersonaConfig) -> str:
        """Render the system prompt.

        Args:
            persona: Persona profile.

        Returns:
            System prompt text.
        """
        ...
