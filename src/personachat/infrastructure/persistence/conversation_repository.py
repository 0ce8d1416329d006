"""SQLite implementation of ConversationRepository."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from personachat.domain.entities import ConversationId, Message, SavedConversation
from personachat.infrastructure.persistence.exceptions import StorageCorruptionError
from personachat.infrastructure.persistence.models import ConversationModel
from personachat.infrastructure.persistence.serialization import (
    dump_messages,
    load_messages,
)

logger = logging.getLogger(__name__)


class SQLiteConversationRepository:
    """SQLite 版 ConversationRepository 実装

    会話 ID ごとに 1 レコードでメッセージ履歴を JSON として保存する。
    破損したレコードは「保存なし」として扱い、ログのみ出力する。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def save(
        self, conversation_id: ConversationId, messages: list[Message]
    ) -> None:
        """会話履歴を保存する（upsert）

        Args:
            conversation_id: 会話 ID
            messages: メッセージリスト（古い順）
        """
        raw = dump_messages(messages)
        async with self._session_factory() as session:
            result = await session.exec(
                select(ConversationModel).where(
                    ConversationModel.conversation_id == str(conversation_id)
                )
            )
            existing = result.first()

            if existing:
                # 更新
                existing.messages = raw
                existing.saved_at = datetime.now(timezone.utc)
                session.add(existing)
            else:
                # 新規作成
                session.add(
                    ConversationModel(
                        conversation_id=str(conversation_id),
                        persona_handle=conversation_id.persona_handle,
                        provider=conversation_id.provider.value,
                        model=conversation_id.model,
                        messages=raw,
                    )
                )

            await session.commit()

    async def load(self, conversation_id: ConversationId) -> SavedConversation | None:
        """会話履歴を取得する

        Args:
            conversation_id: 会話 ID

        Returns:
            保存された会話（存在しない、または破損している場合は None）
        """
        async with self._session_factory() as session:
            result = await session.exec(
                select(ConversationModel).where(
                    ConversationModel.conversation_id == str(conversation_id)
                )
            )
            model = result.first()

        if model is None:
            return None

        try:
            messages = load_messages(model.messages)
        except StorageCorruptionError as e:
            logger.error("Ignoring corrupt history for %s: %s", conversation_id, e)
            return None

        return SavedConversation(
            conversation_id=conversation_id,
            messages=messages,
            saved_at=_as_utc(model.saved_at),
        )

    async def delete(self, conversation_id: ConversationId) -> None:
        """会話履歴を削除する

        Args:
            conversation_id: 会話 ID
        """
        async with self._session_factory() as session:
            result = await session.exec(
                select(ConversationModel).where(
                    ConversationModel.conversation_id == str(conversation_id)
                )
            )
            model = result.first()
            if model is not None:
                await session.delete(model)
                await session.commit()


def _as_utc(dt: datetime) -> datetime:
    """SQLite から読んだ naive datetime を UTC として扱う"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
