"""Conversation repository protocol."""

from typing import Protocol

from personachat.domain.entities import ConversationId, Message, SavedConversation


class ConversationRepository(Protocol):
    """会話履歴リポジトリの抽象インターフェース

    会話 ID ごとにメッセージ履歴を保存・取得する。
    """

    async def save(
        self, conversation_id: ConversationId, messages: list[Message]
    ) -> None:
        """会話履歴を保存する（upsert）

        Args:
            conversation_id: 会話 ID
            messages: システムメッセージを含むメッセージリスト（古い順）
        """
        ...

    async def load(self, conversation_id: ConversationId) -> SavedConversation | None:
        """会話履歴を取得する

        保存データが壊れている場合は None を返す。

        Args:
            conversation_id: 会話 ID

        Returns:
            保存された会話（存在しない場合は None）
        """
        ...

    async def delete(self, conversation_id: ConversationId) -> None:
        """会話履歴を削除する

        Args:
            conversation_id: 会話 ID
        """
        ...
