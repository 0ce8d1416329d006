"""Domain services."""

from personachat.domain.services.context_optimizer import optimize_context
from personachat.domain.services.protocols import ProviderAdapter, SystemPromptBuilder
from personachat.domain.services.token_estimator import (
    calculate_total_tokens,
    estimate_tokens,
    message_tokens,
)

__all__ = [
    "ProviderAdapter",
    "SystemPromptBuilder",
    "calculate_total_tokens",
    "estimate_tokens",
    "message_tokens",
    "optimize_context",
]
