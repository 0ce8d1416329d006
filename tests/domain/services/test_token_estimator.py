"""Tests for token estimation."""

import pytest

from personachat.domain.entities import Message, Role
from personachat.domain.services.token_estimator import (
    calculate_total_tokens,
    estimate_tokens,
    message_tokens,
)


class TestEstimateTokens:
    """estimate_tokens tests."""

    def test_empty_text(self) -> None:
        """Empty text is zero tokens."""
        assert estimate_tokens("") == 0

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("a", 1),
            ("abcd", 1),
            ("abcde", 2),
            ("abcdefgh", 2),
            ("x" * 401, 101),
        ],
    )
    def test_rounds_up(self, text: str, expected: int) -> None:
        """Four characters per token, rounded up."""
        assert estimate_tokens(text) == expected

    def test_monotonic_in_length(self) -> None:
        """Longer text never yields fewer tokens."""
        counts = [estimate_tokens("y" * n) for n in range(64)]

        assert counts == sorted(counts)

    def test_counts_unicode_characters(self) -> None:
        """Length is measured in characters, not bytes."""
        assert estimate_tokens("こんにちは") == 2


class TestMessageTokens:
    """message_tokens tests."""

    def test_uses_cached_count(self) -> None:
        """Cached token_count wins over estimation."""
        message = Message(role=Role.USER, content="abcdefgh", token_count=99)

        assert message_tokens(message) == 99

    def test_cached_zero_is_respected(self) -> None:
        """A cached zero is still a cached value."""
        message = Message(role=Role.USER, content="abcdefgh", token_count=0)

        assert message_tokens(message) == 0

    def test_estimates_when_missing(self) -> None:
        """Missing token_count is recomputed from content."""
        message = Message(role=Role.USER, content="abcdefgh")

        assert message_tokens(message) == 2


def test_calculate_total_tokens() -> None:
    """Total sums cached and estimated counts."""
    messages = [
        Message(role=Role.SYSTEM, content="abcd", token_count=10),
        Message(role=Role.USER, content="abcdefgh"),
        Message(role=Role.ASSISTANT, content=""),
    ]

    assert calculate_total_tokens(messages) == 12
    assert calculate_total_tokens([]) == 0
