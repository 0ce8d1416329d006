"""LLM provider integration."""

from personachat.infrastructure.llm.anthropic_provider import AnthropicProvider
from personachat.infrastructure.llm.base import BaseProvider
from personachat.infrastructure.llm.exceptions import (
    MalformedResponseError,
    ProviderConnectionError,
    ProviderError,
    ProviderHTTPError,
)
from personachat.infrastructure.llm.factory import ProviderFactory
from personachat.infrastructure.llm.model_limits import ModelLimitCache
from personachat.infrastructure.llm.openai_provider import OpenAIProvider
from personachat.infrastructure.llm.prompt_builder import JinjaSystemPromptBuilder

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "JinjaSystemPromptBuilder",
    "MalformedResponseError",
    "ModelLimitCache",
    "OpenAIProvider",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderFactory",
    "ProviderHTTPError",
]
