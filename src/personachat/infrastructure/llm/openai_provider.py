"""OpenAI Chat Completions adapter."""

import logging
from collections.abc import Sequence

import httpx

from personachat.domain.entities import Message, ProviderType
from personachat.infrastructure.llm.base import BaseProvider, to_turns
from personachat.infrastructure.llm.exceptions import MalformedResponseError
from personachat.infrastructure.llm.model_limits import (
    DEFAULT_OPENAI_CONTEXT_LIMIT,
    OPENAI_CONTEXT_LIMITS,
    ModelLimitCache,
    resolve_static_limit,
)

logger = logging.getLogger(__name__)

# Chat formatting costs a few tokens per turn on top of the content.
MESSAGE_OVERHEAD_TOKENS = 4

CONTEXT_WINDOW_FIELDS = ("context_window", "context_length", "max_context_length")


class OpenAIProvider(BaseProvider):
    """OpenAI adapter.

    Model limits are discovered from ``GET /v1/models`` and cached in the
    shared ModelLimitCache. Discovery never raises; it degrades to the static
    table and then to a conservative constant.
    """

    provider_type = ProviderType.OPENAI

    def __init__(
        self,
        api_key: str,
        model: str,
        http_client: httpx.AsyncClient,
        limit_cache: ModelLimitCache,
        *,
        base_url: str = "https://api.openai.com",
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: OpenAI API key.
            model: Model name used for requests.
            http_client: Shared async HTTP client.
            limit_cache: Process-wide model limit cache.
            base_url: API base URL.
            debug_llm_messages: If True, log requests and responses at INFO.
        """
        super().__init__(
            api_key,
            model,
            http_client,
            base_url=base_url,
            debug_llm_messages=debug_llm_messages,
        )
        self._limit_cache = limit_cache

    async def send(
        self,
        messages: Sequence[Message],
        system_prompt: str,
        max_response_tokens: int,
    ) -> str:
        """Call ``POST /v1/chat/completions``.

        The system prompt is sent as the first ``system`` turn.

        Returns:
            ``choices[0].message.content``.

        Raises:
            ProviderHTTPError: Non-success status.
            MalformedResponseError: No message content in the response.
            ProviderConnectionError: Transport failure.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                *to_turns(messages),
            ],
            "max_tokens": max_response_tokens,
        }

        data = await self._post_json(
            f"{self._base_url}/v1/chat/completions", headers, payload
        )
        text = _extract_content(data)
        self._log_response(text)
        return text

    def total_tokens(self, messages: Sequence[Message]) -> int:
        """Content tokens plus a fixed per-message overhead."""
        return super().total_tokens(messages) + MESSAGE_OVERHEAD_TOKENS * len(messages)

    async def model_context_limit(self, model: str | None = None) -> int:
        """Context window for a model.

        Checks the cache, then the model listing endpoint, then static
        defaults. Whatever is resolved is cached for the process lifetime.
        """
        model = model or self.model
        cached = self._limit_cache.get(model)
        if cached is not None:
            logger.debug("Model limit cache hit: %s=%d", model, cached)
            return cached

        limit = await self._fetch_context_window(model)
        if limit is None:
            limit = resolve_static_limit(
                model, OPENAI_CONTEXT_LIMITS, DEFAULT_OPENAI_CONTEXT_LIMIT
            )
        self._limit_cache.set(model, limit)
        return limit

    async def _fetch_context_window(self, model: str) -> int | None:
        """Scan the model listing for the model's context window field.

        Returns:
            Limit, or None if the lookup failed or the field is absent.
        """
        try:
            response = await self._http_client.get(
                f"{self._base_url}/v1/models",
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error("Failed to fetch OpenAI model list, using defaults: %s", e)
            return None

        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            entries = []
        for entry in entries:
            if not isinstance(entry, dict) or entry.get("id") != model:
                continue
            for field in CONTEXT_WINDOW_FIELDS:
                value = entry.get(field)
                if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                    return value

        logger.warning("No context window reported for %s, using defaults", model)
        return None


def _extract_content(data: object) -> str:
    """Pull ``choices[0].message.content`` out of a completion response."""
    choices = data.get("choices") if isinstance(data, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else None
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content:
        logger.error("Unexpected OpenAI response format: %s", data)
        raise MalformedResponseError("Unexpected API response format")
    return content
