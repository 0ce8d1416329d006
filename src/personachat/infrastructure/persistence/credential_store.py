"""SQLite implementation of CredentialStore."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from personachat.domain.entities import ProviderType
from personachat.infrastructure.persistence.models import CredentialModel


class SQLiteCredentialStore:
    """SQLite 版 CredentialStore 実装

    API キーは平文で保存する。
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

    async def get(self, provider: ProviderType) -> str | None:
        """API キーを取得する"""
        async with self._session_factory() as session:
            model = await self._find(session, provider)
            return model.api_key if model else None

    async def set(self, provider: ProviderType, api_key: str) -> None:
        """API キーを登録する（upsert）"""
        async with self._session_factory() as session:
            existing = await self._find(session, provider)
            if existing:
                existing.api_key = api_key
                existing.updated_at = datetime.now(timezone.utc)
                session.add(existing)
            else:
                session.add(CredentialModel(provider=provider.value, api_key=api_key))
            await session.commit()

    async def remove(self, provider: ProviderType) -> None:
        """API キーを削除する"""
        async with self._session_factory() as session:
            existing = await self._find(session, provider)
            if existing:
                await session.delete(existing)
                await session.commit()

    async def has(self, provider: ProviderType) -> bool:
        """空でない API キーが登録されているか確認する"""
        return bool(await self.get(provider))

    async def _find(
        self, session: AsyncSession, provider: ProviderType
    ) -> CredentialModel | None:
        result = await session.exec(
            select(CredentialModel).where(CredentialModel.provider == provider.value)
        )
        return result.first()
