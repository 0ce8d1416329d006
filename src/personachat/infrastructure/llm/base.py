"""Shared provider adapter behavior."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx

from personachat.domain.entities import (
    ConversationConfig,
    Message,
    ProviderContextStats,
    ProviderType,
    Role,
)
from personachat.domain.services.token_estimator import calculate_total_tokens
from personachat.infrastructure.llm.exceptions import (
    MalformedResponseError,
    ProviderConnectionError,
    ProviderHTTPError,
)

logger = logging.getLogger(__name__)


def to_turns(messages: Sequence[Message]) -> list[dict[str, str]]:
    """Convert history to provider chat turns, dropping system messages."""
    return [
        {
            "role": "user" if message.role == Role.USER else "assistant",
            "content": message.content,
        }
        for message in messages
        if not message.is_system
    ]


class BaseProvider(ABC):
    """Common plumbing for HTTP provider adapters.

    Subclasses implement the request/response shape of one provider. The
    HTTP client is shared and owned by the caller.
    """

    provider_type: ProviderType

    def __init__(
        self,
        api_key: str,
        model: str,
        http_client: httpx.AsyncClient,
        *,
        base_url: str,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Provider API key.
            model: Model name used for requests.
            http_client: Shared async HTTP client.
            base_url: API base URL without trailing slash.
            debug_llm_messages: If True, log requests and responses at INFO.
        """
        self._api_key = api_key
        self.model = model
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")
        self._debug_llm_messages = debug_llm_messages

    @abstractmethod
    async def send(
        self,
        messages: Sequence[Message],
        system_prompt: str,
        max_response_tokens: int,
    ) -> str:
        """Send a message window and return the generated text."""

    @abstractmethod
    async def model_context_limit(self, model: str | None = None) -> int:
        """Return the context window size for a model."""

    def total_tokens(self, messages: Sequence[Message]) -> int:
        """Sum token counts, using cached counts where present."""
        return calculate_total_tokens(messages)

    async def context_stats(
        self, messages: Sequence[Message], config: ConversationConfig
    ) -> ProviderContextStats:
        """Token usage against this model's context window.

        Args:
            messages: Message window.
            config: Conversation config (for reserved tokens).

        Returns:
            Total tokens and remaining capacity clamped at zero.
        """
        total = self.total_tokens(messages)
        limit = await self.model_context_limit()
        return ProviderContextStats(
            total_tokens=total,
            remaining_capacity=max(0, limit - config.reserved_tokens - total),
        )

    async def _post_json(
        self, url: str, headers: dict[str, str], payload: dict[str, Any]
    ) -> Any:
        """POST a JSON payload and return the decoded response body.

        Raises:
            ProviderConnectionError: Transport failure.
            ProviderHTTPError: Non-success status.
            MalformedResponseError: Body is not JSON.
        """
        if self._should_log():
            self._log_request(payload)

        try:
            response = await self._http_client.post(url, headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.error("%s request failed: %s", self.provider_type.value, e)
            raise ProviderConnectionError(str(e)) from e

        if response.is_error:
            body = _error_body(response)
            logger.error(
                "%s API error: status=%d body=%s",
                self.provider_type.value,
                response.status_code,
                body,
            )
            raise ProviderHTTPError(response.status_code, body)

        try:
            return response.json()
        except ValueError as e:
            logger.error("%s returned a non-JSON body", self.provider_type.value)
            raise MalformedResponseError("Response body is not valid JSON") from e

    def _should_log(self) -> bool:
        """Check if logging should occur."""
        return self._debug_llm_messages or logger.isEnabledFor(logging.DEBUG)

    def _log_request(self, payload: dict[str, Any]) -> None:
        """Log LLM request payload."""
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== %s Request (model=%s) ===", self.provider_type.value, self.model)
        for i, msg in enumerate(payload.get("messages", [])):
            log_func("[%d] role=%s", i, msg.get("role", "unknown"))
            log_func("    content: %s", msg.get("content", ""))
        log_func("=== End of Request ===")

    def _log_response(self, response: str) -> None:
        """Log LLM response."""
        if not self._should_log():
            return
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== %s Response ===", self.provider_type.value)
        log_func("response: %s", response)
        log_func("=== End of Response ===")


def _error_body(response: httpx.Response) -> Any:
    """Error payload as JSON when possible, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text
