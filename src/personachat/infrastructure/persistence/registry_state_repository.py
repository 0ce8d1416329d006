"""SQLite implementation of RegistryStateRepository."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from personachat.domain.entities import ConversationId, RegistryState
from personachat.infrastructure.persistence.exceptions import StorageCorruptionError
from personachat.infrastructure.persistence.models import RegistryStateModel
from personachat.infrastructure.persistence.serialization import (
    dump_conversation_ids,
    load_conversation_ids,
)

logger = logging.getLogger(__name__)

DEFAULT_STATE_NAME = "default"


class SQLiteRegistryStateRepository:
    """SQLite 版 RegistryStateRepository 実装

    名前付きの 1 レコードにレジストリ全体の状態を保存する。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
        name: str = DEFAULT_STATE_NAME,
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
            name: エンベロープ名
        """
        self._session_factory = session_factory
        self._name = name

    async def save(self, state: RegistryState) -> None:
        """エンベロープを保存する（upsert）"""
        conversations = dump_conversation_ids(state.conversations)
        selected_id = str(state.selected_id) if state.selected_id else None

        async with self._session_factory() as session:
            result = await session.exec(
                select(RegistryStateModel).where(RegistryStateModel.name == self._name)
            )
            existing = result.first()

            if existing:
                existing.conversations = conversations
                existing.selected_id = selected_id
                existing.last_persona = state.last_persona
                existing.updated_at = datetime.now(timezone.utc)
                session.add(existing)
            else:
                session.add(
                    RegistryStateModel(
                        name=self._name,
                        conversations=conversations,
                        selected_id=selected_id,
                        last_persona=state.last_persona,
                    )
                )

            await session.commit()

    async def load(self) -> RegistryState | None:
        """エンベロープを取得する

        Returns:
            レジストリ状態（未保存または破損している場合は None）
        """
        async with self._session_factory() as session:
            result = await session.exec(
                select(RegistryStateModel).where(RegistryStateModel.name == self._name)
            )
            model = result.first()

        if model is None:
            return None

        try:
            conversations = load_conversation_ids(model.conversations)
        except StorageCorruptionError as e:
            logger.error("Ignoring corrupt registry state: %s", e)
            return None

        selected_id: ConversationId | None = None
        if model.selected_id:
            try:
                selected_id = ConversationId.parse(model.selected_id)
            except ValueError as e:
                logger.error("Ignoring invalid selected conversation id: %s", e)

        return RegistryState(
            conversations=conversations,
            selected_id=selected_id,
            last_persona=model.last_persona,
        )
