"""Context window optimization.

Trims a conversation history in three passes, each working on the output of
the previous one:

1. age: drop non-system messages older than ``max_message_age`` minutes or
   without a timestamp.
2. count: keep the system message plus the ``max_messages - 1`` newest.
3. tokens: evict the oldest non-system message until the history fits in
   ``max_tokens - reserved_tokens``, but never below two messages.

The system message at index 0 survives every pass.
"""

import logging
from collections.abc import Callable, Sequence

from personachat.domain.entities import (
    ConversationConfig,
    Message,
    current_timestamp_ms,
)
from personachat.domain.services.token_estimator import calculate_total_tokens

logger = logging.getLogger(__name__)

TokenCounter = Callable[[Sequence[Message]], int]

MIN_RETAINED_MESSAGES = 2


def filter_by_age(
    messages: Sequence[Message], max_age_minutes: int, now: int
) -> list[Message]:
    """Drop expired non-system messages.

    Args:
        messages: History with the system message first.
        max_age_minutes: Maximum age in minutes.
        now: Current time in epoch milliseconds.

    Returns:
        Filtered history.
    """
    max_age_ms = max_age_minutes * 60 * 1000
    kept: list[Message] = []
    for index, message in enumerate(messages):
        if index == 0:
            kept.append(message)
        elif message.timestamp is not None and now - message.timestamp <= max_age_ms:
            kept.append(message)
    return kept


def limit_by_count(messages: Sequence[Message], max_messages: int) -> list[Message]:
    """Keep the system message and the newest ``max_messages - 1`` messages."""
    if len(messages) <= max_messages:
        return list(messages)
    recent_count = max_messages - 1
    recent = list(messages[len(messages) - recent_count :]) if recent_count > 0 else []
    return [messages[0], *recent]


def limit_by_tokens(
    messages: Sequence[Message],
    token_budget: int,
    count_tokens: TokenCounter = calculate_total_tokens,
) -> list[Message]:
    """Evict the oldest non-system message until the budget is met.

    Stops at two messages even if the budget is still exceeded.
    """
    trimmed = list(messages)
    while (
        count_tokens(trimmed) > token_budget
        and len(trimmed) > MIN_RETAINED_MESSAGES
    ):
        del trimmed[1]
    return trimmed


def optimize_context(
    messages: Sequence[Message],
    config: ConversationConfig,
    now: int | None = None,
    count_tokens: TokenCounter = calculate_total_tokens,
) -> list[Message]:
    """Produce the trimmed history for a conversation.

    Pure function: the input sequence is not modified.

    Args:
        messages: Full history with the system message first.
        config: Eviction policy.
        now: Current time in epoch milliseconds. Defaults to the clock.
        count_tokens: Token counter for the budget pass. Provider adapters
            pass their own so per-message overhead is accounted for.

    Returns:
        New list holding the retained messages in original order.
    """
    if not messages:
        return []
    if now is None:
        now = current_timestamp_ms()

    aged = filter_by_age(messages, config.max_message_age, now)
    counted = limit_by_count(aged, config.max_messages)
    trimmed = limit_by_tokens(counted, config.history_token_budget, count_tokens)

    if len(trimmed) != len(messages):
        logger.debug(
            "Context optimized: %d -> %d messages (age=%d, count=%d, tokens=%d)",
            len(messages),
            len(trimmed),
            len(messages) - len(aged),
            len(aged) - len(counted),
            len(counted) - len(trimmed),
        )
    return trimmed
