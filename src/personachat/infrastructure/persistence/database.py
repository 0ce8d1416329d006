"""SQLite storage shared by the conversation, registry and credential stores."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# conversations / registry_state / credentials をメタデータに登録する
from personachat.infrastructure.persistence import models as _models  # noqa: F401

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def sqlite_url(database_path: str) -> str:
    """aiosqlite の接続 URL を組み立てる

    ``~`` はホームディレクトリに展開し、ファイルの親ディレクトリがなければ作る。

    Args:
        database_path: SQLite ファイルのパス、または ":memory:"

    Returns:
        ``sqlite+aiosqlite:///`` で始まる URL
    """
    if database_path == IN_MEMORY:
        return f"sqlite+aiosqlite:///{IN_MEMORY}"
    path = Path(database_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{path}"


class DatabaseManager:
    """personachat の保存先

    会話履歴、レジストリのエンベロープ、API キーを 1 つの SQLite ファイルに置く。
    各リポジトリには ``get_session`` を session_factory として渡す。
    ``async with`` で使うとテーブル作成と接続の破棄を任せられる。
    """

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def database_path(self) -> str:
        return self._database_path

    def get_engine(self) -> AsyncEngine:
        """エンジンを取得する（初回呼び出し時に生成）"""
        if self._engine is None:
            self._engine = create_async_engine(sqlite_url(self._database_path))
            self._sessions = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._engine

    async def create_tables(self) -> None:
        """未作成のテーブルを作る"""
        async with self.get_engine().begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Opened chat database at %s", self._database_path)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """リポジトリ用のセッションを開く"""
        self.get_engine()
        assert self._sessions is not None
        async with self._sessions() as session:
            yield session

    async def close(self) -> None:
        """接続を破棄する。再度使うとエンジンを作り直す"""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    async def __aenter__(self) -> "DatabaseManager":
        await self.create_tables()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
