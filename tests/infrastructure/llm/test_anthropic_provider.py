"""Tests for AnthropicProvider."""

import json
from unittest.mock import patch

import httpx
import pytest

from personachat.domain.entities import ConversationConfig, Message, ProviderType, Role
from personachat.infrastructure.llm import (
    AnthropicProvider,
    MalformedResponseError,
    ProviderConnectionError,
    ProviderHTTPError,
)
from personachat.infrastructure.llm.anthropic_provider import ANTHROPIC_VERSION
from personachat.infrastructure.llm.model_limits import DEFAULT_ANTHROPIC_CONTEXT_LIMIT

BASE_URL = "https://api.anthropic.com"


def text_response(text: str) -> httpx.Response:
    return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


def create_provider(client: httpx.AsyncClient, model: str = "claude-3-opus-20240229"):
    return AnthropicProvider("sk-ant-test", model, client, base_url=BASE_URL)


class TestAnthropicProviderSend:
    """send tests."""

    async def test_sends_messages_request(
        self, make_client, sent_requests, history
    ) -> None:
        """Request carries headers, system prompt and turns."""
        provider = create_provider(make_client(lambda r: text_response("An engine.")))

        result = await provider.send(history, "Be Ada.", 1000)

        assert result == "An engine."
        request = sent_requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant-test"
        assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
        body = json.loads(request.content)
        assert body["model"] == "claude-3-opus-20240229"
        assert body["max_tokens"] == 1000
        assert body["system"] == "Be Ada."
        assert body["messages"] == [
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Good day."},
            {"role": "user", "content": "What is an engine?"},
        ]

    async def test_provider_type(self, make_client) -> None:
        """provider_type is anthropic."""
        provider = create_provider(make_client(lambda r: text_response("x")))

        assert provider.provider_type == ProviderType.ANTHROPIC
        assert provider.model == "claude-3-opus-20240229"

    async def test_http_error_with_json_body(self, make_client, history) -> None:
        """Non-success status raises ProviderHTTPError with the JSON body."""
        error = {"type": "error", "error": {"type": "authentication_error"}}
        provider = create_provider(
            make_client(lambda r: httpx.Response(401, json=error))
        )

        with pytest.raises(ProviderHTTPError) as exc_info:
            await provider.send(history, "Be Ada.", 1000)

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == error
        assert str(exc_info.value).startswith("API Error: 401")

    async def test_http_error_with_text_body(self, make_client, history) -> None:
        """Non-JSON error body is kept as text."""
        provider = create_provider(
            make_client(lambda r: httpx.Response(500, text="overloaded"))
        )

        with pytest.raises(ProviderHTTPError) as exc_info:
            await provider.send(history, "Be Ada.", 1000)

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "overloaded"

    @pytest.mark.parametrize(
        "body",
        [
            {"content": []},
            {"content": [{"type": "text"}]},
            {"content": [{"type": "text", "text": ""}]},
            {"unexpected": True},
        ],
    )
    async def test_malformed_response(self, make_client, history, body) -> None:
        """Missing content[0].text raises MalformedResponseError."""
        provider = create_provider(
            make_client(lambda r: httpx.Response(200, json=body))
        )

        with pytest.raises(MalformedResponseError):
            await provider.send(history, "Be Ada.", 1000)

    async def test_non_json_success_body(self, make_client, history) -> None:
        """Success status with a non-JSON body is malformed."""
        provider = create_provider(
            make_client(lambda r: httpx.Response(200, text="<html>"))
        )

        with pytest.raises(MalformedResponseError):
            await provider.send(history, "Be Ada.", 1000)

    async def test_connection_error(self, make_client, history) -> None:
        """Transport failure raises ProviderConnectionError."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = create_provider(make_client(refuse))

        with pytest.raises(ProviderConnectionError):
            await provider.send(history, "Be Ada.", 1000)


class TestAnthropicProviderLimits:
    """Context limit and token tests."""

    async def test_known_model_limit(self, make_client, sent_requests) -> None:
        """Known models come from the static table without HTTP."""
        provider = create_provider(make_client(lambda r: text_response("x")))

        assert await provider.model_context_limit() == 200000
        assert await provider.model_context_limit("claude-2.0") == 100000
        assert sent_requests == []

    async def test_unknown_model_falls_back(self, make_client) -> None:
        """Unknown models get the conservative default."""
        provider = create_provider(
            make_client(lambda r: text_response("x")), model="claude-unreleased"
        )

        with patch("litellm.get_model_info", side_effect=Exception("not mapped")):
            limit = await provider.model_context_limit()

        assert limit == DEFAULT_ANTHROPIC_CONTEXT_LIMIT

    async def test_total_tokens(self, make_client) -> None:
        """Total uses cached counts and estimates."""
        provider = create_provider(make_client(lambda r: text_response("x")))
        messages = [
            Message(role=Role.SYSTEM, content="abcd", token_count=7),
            Message(role=Role.USER, content="abcdefgh"),
        ]

        assert provider.total_tokens(messages) == 9

    async def test_context_stats(self, make_client) -> None:
        """Remaining capacity is limit - reserved - total."""
        provider = create_provider(make_client(lambda r: text_response("x")))
        messages = [Message(role=Role.USER, content="x", token_count=1000)]

        stats = await provider.context_stats(
            messages, ConversationConfig(reserved_tokens=500)
        )

        assert stats.total_tokens == 1000
        assert stats.remaining_capacity == 200000 - 500 - 1000

    async def test_context_stats_clamped(self, make_client) -> None:
        """Remaining capacity never goes negative."""
        provider = create_provider(make_client(lambda r: text_response("x")))
        messages = [Message(role=Role.USER, content="x", token_count=250000)]

        stats = await provider.context_stats(messages, ConversationConfig())

        assert stats.remaining_capacity == 0
