"""LLM provider exceptions."""

from typing import Any


class ProviderError(Exception):
    """Base exception for provider call failures."""


class ProviderHTTPError(ProviderError):
    """Remote call returned a non-success status.

    Attributes:
        status_code: HTTP status code.
        body: Raw error payload (parsed JSON when possible, else text).
    """

    def __init__(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error: {status_code} - {body}")


class MalformedResponseError(ProviderError):
    """Response body did not have the expected shape."""


class ProviderConnectionError(ProviderError):
    """Transport failure (timeout, DNS, refused connection)."""
