"""Common fixtures for application service tests."""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from personachat.domain.entities import (
    ConversationConfig,
    ConversationId,
    Message,
    ProviderConfig,
    ProviderContextStats,
    ProviderType,
    SavedConversation,
)
from personachat.domain.services import calculate_total_tokens
from personachat.infrastructure.llm import JinjaSystemPromptBuilder


class FakeProvider:
    """Provider adapter answering with a canned reply."""

    def __init__(
        self,
        provider_type: ProviderType = ProviderType.ANTHROPIC,
        model: str = "claude-2.1",
        reply: str = "Greetings from the engine.",
    ) -> None:
        self.provider_type = provider_type
        self.model = model
        self.send = AsyncMock(return_value=reply)
        self.context_limit = 200000

    async def model_context_limit(self, model: str | None = None) -> int:
        return self.context_limit

    def total_tokens(self, messages: Sequence[Message]) -> int:
        return calculate_total_tokens(messages)

    async def context_stats(
        self, messages: Sequence[Message], config: ConversationConfig
    ) -> ProviderContextStats:
        total = self.total_tokens(messages)
        return ProviderContextStats(
            total_tokens=total,
            remaining_capacity=max(
                0, self.context_limit - config.reserved_tokens - total
            ),
        )


class InMemoryConversationRepository:
    """ConversationRepository backed by a dict."""

    def __init__(self) -> None:
        self.records: dict[ConversationId, SavedConversation] = {}

    async def save(
        self, conversation_id: ConversationId, messages: list[Message]
    ) -> None:
        self.records[conversation_id] = SavedConversation(
            conversation_id=conversation_id,
            messages=list(messages),
            saved_at=datetime.now(timezone.utc),
        )

    async def load(self, conversation_id: ConversationId) -> SavedConversation | None:
        return self.records.get(conversation_id)

    async def delete(self, conversation_id: ConversationId) -> None:
        self.records.pop(conversation_id, None)


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """Factory for fake provider adapters."""
    return FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    """Fake Anthropic adapter."""
    return FakeProvider()


@pytest.fixture
def repository() -> InMemoryConversationRepository:
    """In-memory conversation repository."""
    return InMemoryConversationRepository()


@pytest.fixture
def prompt_builder() -> JinjaSystemPromptBuilder:
    """Real system prompt builder."""
    return JinjaSystemPromptBuilder()


@pytest.fixture
def provider_factory() -> Mock:
    """ProviderFactory mock creating fake adapters."""
    factory = Mock()

    def create(provider_config: ProviderConfig, api_key: str) -> FakeProvider:
        return FakeProvider(provider_config.type, provider_config.model)

    factory.create.side_effect = create
    return factory
