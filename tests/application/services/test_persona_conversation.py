"""PersonaConversation のテスト"""

import asyncio
from unittest.mock import Mock, patch

import pytest

from personachat.application.services import PersonaConversation, persona_conversation
from personachat.domain.entities import (
    ConversationConfig,
    ConversationId,
    ConversationState,
    Message,
    PersonaConfig,
    Role,
)
from personachat.infrastructure.llm import ProviderHTTPError

NOW = 1_700_000_000_000
MINUTE_MS = 60 * 1000


@pytest.fixture
async def conversation(provider, persona, repository, prompt_builder):
    """新規会話"""
    return await PersonaConversation.create(
        provider, persona, repository, prompt_builder
    )


class TestCreate:
    """create のテスト"""

    async def test_fresh_conversation(
        self, conversation: PersonaConversation, repository, persona: PersonaConfig
    ) -> None:
        """保存がなければシステムメッセージのみで開始し保存する"""
        messages = conversation.get_messages()

        assert len(messages) == 1
        assert messages[0].role == Role.SYSTEM
        assert messages[0].content.startswith("You are Ada Lovelace")
        assert messages[0].timestamp is not None
        assert messages[0].token_count is not None
        assert conversation.state == ConversationState.FRESH
        assert conversation.conversation_id == ConversationId(
            "ada_lovelace", conversation.provider.provider_type, "claude-2.1"
        )
        assert repository.records[conversation.conversation_id].messages == messages

    async def test_resumes_saved_history(
        self, provider, persona, repository, prompt_builder
    ) -> None:
        """保存済みの履歴があれば再開する"""
        conversation_id = ConversationId(
            persona.handle, provider.provider_type, provider.model
        )
        saved = [
            Message(role=Role.SYSTEM, content="Saved prompt", timestamp=NOW),
            Message(role=Role.USER, content="Hello", timestamp=NOW),
            Message(role=Role.ASSISTANT, content="Good day.", timestamp=NOW),
        ]
        await repository.save(conversation_id, saved)
        builder = Mock(wraps=prompt_builder)

        conversation = await PersonaConversation.create(
            provider, persona, repository, builder
        )

        assert conversation.get_messages() == saved
        assert conversation.system_prompt == "Saved prompt"
        assert conversation.state == ConversationState.ACTIVE
        builder.build.assert_not_called()

    async def test_saved_history_without_system_message(
        self, provider, persona, repository, prompt_builder
    ) -> None:
        """先頭がシステムメッセージでなければ新規扱い"""
        conversation_id = ConversationId(
            persona.handle, provider.provider_type, provider.model
        )
        await repository.save(
            conversation_id, [Message(role=Role.USER, content="orphan", timestamp=NOW)]
        )

        conversation = await PersonaConversation.create(
            provider, persona, repository, prompt_builder
        )

        messages = conversation.get_messages()
        assert len(messages) == 1
        assert messages[0].is_system


class TestSendMessage:
    """send_message のテスト"""

    async def test_successful_exchange(
        self, conversation: PersonaConversation, provider, repository
    ) -> None:
        """ユーザーと応答のメッセージが追加され保存される"""
        reply = await conversation.send_message("What is an engine?")

        assert reply == "Greetings from the engine."
        messages = conversation.get_messages()
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
        assert messages[1].content == "What is an engine?"
        assert messages[2].content == "Greetings from the engine."
        assert all(m.token_count is not None for m in messages)
        assert conversation.state == ConversationState.ACTIVE
        assert not conversation.is_pending
        assert repository.records[conversation.conversation_id].messages == messages

    async def test_provider_receives_window(
        self, conversation: PersonaConversation, provider
    ) -> None:
        """プロバイダには最適化済み履歴・システムプロンプト・予約トークンが渡る"""
        await conversation.send_message("Hello")

        window, system_prompt, max_tokens = provider.send.call_args.args
        assert [m.role for m in window] == [Role.SYSTEM, Role.USER]
        assert window[-1].content == "Hello"
        assert system_prompt == conversation.system_prompt
        assert max_tokens == conversation.config.reserved_tokens

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_empty_message_rejected(
        self, conversation: PersonaConversation, provider, text: str
    ) -> None:
        """空メッセージは何もしない"""
        assert await conversation.send_message(text) is None

        provider.send.assert_not_called()
        assert len(conversation.get_messages()) == 1

    async def test_rejected_while_pending(
        self, conversation: PersonaConversation, provider
    ) -> None:
        """送信中の再送信は拒否される"""
        release = asyncio.Event()

        async def slow_send(*args, **kwargs) -> str:
            await release.wait()
            return "Finally."

        provider.send.side_effect = slow_send

        first = asyncio.create_task(conversation.send_message("First"))
        await asyncio.sleep(0)
        while provider.send.await_count == 0:
            await asyncio.sleep(0)

        assert conversation.is_pending
        assert conversation.state == ConversationState.PENDING
        assert await conversation.send_message("Second") is None

        release.set()
        assert await first == "Finally."
        contents = [m.content for m in conversation.display_messages()]
        assert contents == ["First", "Finally."]
        assert provider.send.await_count == 1

    async def test_provider_error_keeps_user_message(
        self, conversation: PersonaConversation, provider, repository
    ) -> None:
        """プロバイダエラー時はユーザーメッセージが残り pending が解除される"""
        provider.send.side_effect = ProviderHTTPError(500, "overloaded")

        with pytest.raises(ProviderHTTPError):
            await conversation.send_message("Are you there?")

        messages = conversation.get_messages()
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert messages[-1].content == "Are you there?"
        assert not conversation.is_pending
        assert conversation.state == ConversationState.ACTIVE
        assert repository.records[conversation.conversation_id].messages == messages

    async def test_can_send_after_error(
        self, conversation: PersonaConversation, provider
    ) -> None:
        """エラー後も再送信できる"""
        provider.send.side_effect = [ProviderHTTPError(429, "slow down"), "Recovered."]

        with pytest.raises(ProviderHTTPError):
            await conversation.send_message("One")
        reply = await conversation.send_message("Two")

        assert reply == "Recovered."
        contents = [m.content for m in conversation.display_messages()]
        assert contents == ["One", "Two", "Recovered."]

    async def test_history_is_optimized(
        self, provider, persona, repository, prompt_builder
    ) -> None:
        """max_messages を超えた分は古いものから削除される"""
        conversation = await PersonaConversation.create(
            provider,
            persona,
            repository,
            prompt_builder,
            ConversationConfig(max_messages=3),
        )

        await conversation.send_message("one")
        await conversation.send_message("two")

        messages = conversation.get_messages()
        assert len(messages) == 3
        assert messages[0].is_system
        assert [m.content for m in messages[1:]] == [
            "two",
            "Greetings from the engine.",
        ]

    async def test_total_tokens_tracks_history(
        self, conversation: PersonaConversation
    ) -> None:
        """total_tokens は履歴の合計"""
        await conversation.send_message("abcdefgh")

        expected = sum(m.token_count for m in conversation.get_messages())
        assert conversation.total_tokens == expected


class TestStats:
    """統計のテスト"""

    async def test_context_stats(
        self, provider, persona, repository
    ) -> None:
        """件数・トークン・最古メッセージの経過分・残容量"""
        messages = [
            Message(role=Role.SYSTEM, content="s", timestamp=NOW, token_count=10),
            Message(
                role=Role.USER,
                content="u",
                timestamp=NOW - 5 * MINUTE_MS - 1000,
                token_count=20,
            ),
        ]
        conversation = PersonaConversation(
            ConversationId(persona.handle, provider.provider_type, provider.model),
            provider,
            persona,
            repository,
            ConversationConfig(max_tokens=1000, reserved_tokens=100),
            messages,
        )

        with patch.object(
            persona_conversation, "current_timestamp_ms", return_value=NOW
        ):
            stats = conversation.context_stats()

        assert stats.message_count == 2
        assert stats.total_tokens == 30
        assert stats.oldest_message_age == 5
        assert stats.remaining_token_capacity == 970

    async def test_context_stats_fresh(
        self, conversation: PersonaConversation
    ) -> None:
        """新規会話の経過分は 0"""
        stats = conversation.context_stats()

        assert stats.message_count == 1
        assert stats.oldest_message_age == 0

    async def test_provider_context_stats(
        self, conversation: PersonaConversation, provider
    ) -> None:
        """プロバイダのモデル上限に対する残容量"""
        stats = await conversation.provider_context_stats()

        assert stats.total_tokens == conversation.total_tokens
        assert stats.remaining_capacity == (
            provider.context_limit
            - conversation.config.reserved_tokens
            - conversation.total_tokens
        )


class TestClearHistory:
    """clear_history のテスト"""

    async def test_clear_history(
        self, conversation: PersonaConversation, repository
    ) -> None:
        """システムメッセージのみ残り保存済みの記録は削除される"""
        system = conversation.get_messages()[0]
        await conversation.send_message("one")
        await conversation.send_message("two")

        await conversation.clear_history()

        assert conversation.get_messages() == [system]
        assert conversation.state == ConversationState.FRESH
        assert conversation.total_tokens == system.token_count
        assert conversation.conversation_id not in repository.records

    async def test_clear_while_pending_discards_reply(
        self, conversation: PersonaConversation, provider, repository
    ) -> None:
        """送信中にクリアすると、届いた応答は捨てられ記録も復活しない"""
        system = conversation.get_messages()[0]
        release = asyncio.Event()

        async def slow_send(*args, **kwargs) -> str:
            await release.wait()
            return "Too late."

        provider.send.side_effect = slow_send

        pending = asyncio.create_task(conversation.send_message("Forget this"))
        while provider.send.await_count == 0:
            await asyncio.sleep(0)

        await conversation.clear_history()
        release.set()

        assert await pending is None
        assert conversation.get_messages() == [system]
        assert not conversation.is_pending
        assert conversation.state == ConversationState.FRESH
        assert conversation.conversation_id not in repository.records

    async def test_send_after_clear_while_pending(
        self, conversation: PersonaConversation, provider
    ) -> None:
        """捨てられた応答の後も通常どおり送信できる"""
        release = asyncio.Event()

        async def slow_send(*args, **kwargs) -> str:
            await release.wait()
            return "Too late."

        provider.send.side_effect = slow_send
        pending = asyncio.create_task(conversation.send_message("Forget this"))
        while provider.send.await_count == 0:
            await asyncio.sleep(0)
        await conversation.clear_history()
        release.set()
        await pending

        provider.send.side_effect = None
        reply = await conversation.send_message("Fresh start")

        assert reply == "Greetings from the engine."
        assert [m.role for m in conversation.get_messages()] == [
            Role.SYSTEM,
            Role.USER,
            Role.ASSISTANT,
        ]

    async def test_display_messages_exclude_system(
        self, conversation: PersonaConversation
    ) -> None:
        """表示用メッセージにシステムメッセージは含まれない"""
        await conversation.send_message("Hello")

        assert [m.role for m in conversation.display_messages()] == [
            Role.USER,
            Role.ASSISTANT,
        ]
