"""Shared test fixtures.

Tests run against a throwaway SQLite file per test (aiosqlite driver) with
foreign keys enforced, so cascades behave as they do on PostgreSQL. Redis is
left uninitialized: rate limiting is bypassed and level-up broadcasts are
only logged.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from jinsei.config import get_settings
from jinsei.database import close_db, get_engine, get_session_factory, init_db
from jinsei.db.base import Base
from jinsei.main import create_app
from jinsei.redis_client import close_redis
from tests.factories import Tree, build_tree


@pytest.fixture(autouse=True)
def _test_settings(tmp_path, monkeypatch):
    """Point settings at a per-test SQLite database."""
    monkeypatch.setenv("JINSEI_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'jinsei_test.db'}")
    monkeypatch.setenv("JINSEI_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Initialize the database and create the schema."""
    await init_db(get_settings().database_url)
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await close_db()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the initialized test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await close_redis()


@pytest_asyncio.fixture
async def tree(db_session: AsyncSession) -> Tree:
    return await build_tree(db_session)


@pytest_asyncio.fixture
async def other_tree(db_session: AsyncSession) -> Tree:
    """A second, unrelated profile's branch."""
    return await build_tree(db_session, email="grace@example.com")
