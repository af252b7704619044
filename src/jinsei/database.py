"""Async SQLAlchemy engine and session management.

The engine is process-wide state. ``init_db`` is idempotent for the same URL,
``get_session`` initializes lazily from settings on first use, and
``close_db`` disposes the pool on shutdown.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from jinsei.config import get_settings

_engine: AsyncEngine | None = None
_engine_url: str | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:  # noqa: ANN401
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> AsyncEngine:
    settings = get_settings()
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=False,
            connect_args={"timeout": settings.sqlite_busy_timeout_seconds},
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        echo=False,
        connect_args={"statement_cache_size": 0},
    )


async def init_db(url: str) -> None:
    """Initialize the database engine and session factory.

    Calling again with the URL already in use is a no-op. A different URL
    disposes the previous engine first.
    """
    global _engine, _engine_url, _session_factory  # noqa: PLW0603
    if _engine is not None:
        if url == _engine_url:
            return
        await close_db()

    _engine = _build_engine(url)
    _engine_url = url
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine, _engine_url, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
    _engine = None
    _engine_url = None
    _session_factory = None


async def ensure_db() -> async_sessionmaker[AsyncSession]:
    """Return the session factory, initializing from settings on first use."""
    if _session_factory is None:
        await init_db(get_settings().database_url)
    assert _session_factory is not None
    return _session_factory


def get_engine() -> AsyncEngine:
    """Get the async engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory of an initialized database."""
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    session_factory = await ensure_db()
    async with session_factory() as session:
        yield session
