"""
Async SQLAlchemy engine and session lifecycle for the analysis store.

Every request runs its writes inside one ``get_session()`` block, which
commits on clean exit and rolls back on any error, so a failed request
leaves no partial rows. The default backend is a local SQLite file; the
engine turns on WAL journaling and a busy timeout there so concurrent
requests wait for the writer instead of failing with "database is locked".
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mindwave.core.config import get_settings

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# Module-level singletons (swapped via ``bind_engine`` / ``reset_engine`` in tests).
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _prepare_sqlite_file(database: str | None) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _set_sqlite_pragmas(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Build an engine for ``database_url`` with backend-specific setup."""
    url = make_url(database_url)
    engine = create_async_engine(url, echo=False)
    if url.get_backend_name() == "sqlite":
        _prepare_sqlite_file(url.database)
        if url.database and url.database != ":memory:":
            event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    logger.debug("Database engine created for %s", url.render_as_string(hide_password=True))
    return engine


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it from settings on first call."""
    global _engine
    if _engine is None:
        _engine = create_engine_for_url(get_settings().database_url)
    return _engine


def bind_engine(engine: AsyncEngine) -> None:
    """Route all sessions through ``engine`` (tests use in-memory SQLite)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = None


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` that commits on success, rolls back on error."""
    async with _get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the analysis, pattern and prediction tables if missing."""
    # Importing the models registers their tables on Base.metadata
    from mindwave.services.storage import models_db  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and reset module globals."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
    reset_engine()


def reset_engine() -> None:
    """Forget the engine without disposing it (the owner disposes)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
