"""Approximate token estimation.

Token counts are a length-based heuristic (about four characters per
token), not the provider's tokenizer. Good enough to decide when to evict
history and to show usage.
"""

import math
from collections.abc import Iterable

from personachat.domain.entities import Message

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens in a text.

    Args:
        text: Any text. Empty input yields 0.

    Returns:
        ``ceil(len(text) / 4)``.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def message_tokens(message: Message) -> int:
    """Token count of a message, preferring the cached value."""
    if message.token_count is not None:
        return message.token_count
    return estimate_tokens(message.content)


def calculate_total_tokens(messages: Iterable[Message]) -> int:
    """Sum token counts over messages."""
    return sum(message_tokens(message) for message in messages)
