"""Common fixtures."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from personachat.domain.entities import PersonaConfig

# Register table models with SQLModel metadata
from personachat.infrastructure.persistence import models as _models  # noqa: F401


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory SQLite async engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    """Create async session factory."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    return get_session


@pytest.fixture
def persona() -> PersonaConfig:
    """Create test persona."""
    return PersonaConfig(
        name="Ada Lovelace",
        twitter_username="ada_lovelace",
        tweet_examples=["The Analytical Engine weaves algebraic patterns."],
        characteristics=["Poetic about mathematics"],
        topics=["Computing machines"],
        language="English",
    )


@pytest.fixture
def other_persona() -> PersonaConfig:
    """Create a second test persona."""
    return PersonaConfig(
        name="Marcus Aurelius",
        twitter_username="marcus_stoic",
        tweet_examples=["You have power over your mind."],
        characteristics=["Calm"],
        topics=["Stoicism"],
        language="English",
    )
