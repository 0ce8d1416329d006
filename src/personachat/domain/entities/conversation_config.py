"""Conversation eviction policy."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationConfig:
    """会話コンテキストの管理ポリシー

    Attributes:
        max_tokens: コンテキスト上限トークン数
        max_message_age: メッセージの保持期間（分）
        max_messages: システムメッセージを含む最大メッセージ数
        reserved_tokens: 応答用に確保するトークン数
    """

    max_tokens: int = 100000
    max_message_age: int = 60
    max_messages: int = 20
    reserved_tokens: int = 1000

    @property
    def history_token_budget(self) -> int:
        """履歴に使えるトークン数"""
        return self.max_tokens - self.reserved_tokens
