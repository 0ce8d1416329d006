"""Anthropic Messages API adapter."""

import logging
from collections.abc import Sequence

from personachat.domain.entities import Message, ProviderType
from personachat.infrastructure.llm.base import BaseProvider, to_turns
from personachat.infrastructure.llm.exceptions import MalformedResponseError
from personachat.infrastructure.llm.model_limits import (
    ANTHROPIC_CONTEXT_LIMITS,
    DEFAULT_ANTHROPIC_CONTEXT_LIMIT,
    resolve_static_limit,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProvider):
    """Anthropic adapter.

    Context limits come from a static table; no remote lookup.
    """

    provider_type = ProviderType.ANTHROPIC

    async def send(
        self,
        messages: Sequence[Message],
        system_prompt: str,
        max_response_tokens: int,
    ) -> str:
        """Call ``POST /v1/messages``.

        Args:
            messages: History window. System messages are dropped from the
                turns; the prompt goes in the ``system`` field.
            system_prompt: Persona instruction.
            max_response_tokens: ``max_tokens`` for the response.

        Returns:
            Text of the first content block.

        Raises:
            ProviderHTTPError: Non-success status.
            MalformedResponseError: No ``content[0].text`` in the response.
            ProviderConnectionError: Transport failure.
        """
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        payload = {
            "model": self.model,
            "max_tokens": max_response_tokens,
            "system": system_prompt,
            "messages": to_turns(messages),
        }

        data = await self._post_json(f"{self._base_url}/v1/messages", headers, payload)
        text = _extract_text(data)
        self._log_response(text)
        return text

    async def model_context_limit(self, model: str | None = None) -> int:
        """Context window from the static table, with a conservative fallback."""
        return resolve_static_limit(
            model or self.model,
            ANTHROPIC_CONTEXT_LIMITS,
            DEFAULT_ANTHROPIC_CONTEXT_LIMIT,
        )


def _extract_text(data: object) -> str:
    """Pull ``content[0].text`` out of a Messages API response."""
    content = data.get("content") if isinstance(data, dict) else None
    if not isinstance(content, list) or not content:
        logger.error("Unexpected Anthropic response format: %s", data)
        raise MalformedResponseError("Unexpected API response format")

    first = content[0]
    text = first.get("text") if isinstance(first, dict) else None
    if not isinstance(text, str) or not text:
        logger.error("Unexpected Anthropic response format: %s", data)
        raise MalformedResponseError("Unexpected API response format")
    return text
