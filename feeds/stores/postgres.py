"""PostgreSQL store with async SQLAlchemy.

Handles:
- Engine construction and connection pooling
- Session factory for repositories
- Schema helpers for development and testing

Nothing here is held globally: callers build the engine, inject the session
factory into a store and dispose the engine themselves.
"""

import logging

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from feeds.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign key enforcement switched off per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create an async engine from settings.

    Args:
        settings: Settings to use (defaults to the cached environment settings).

    Returns:
        AsyncEngine owned by the caller.
    """
    settings = settings or get_settings()

    if settings.is_sqlite:
        engine = create_async_engine(settings.async_database_url, echo=settings.debug)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            settings.async_database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )

    logger.info("Database engine created (dialect=%s)", engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close the engine's connection pool."""
    await engine.dispose()
    logger.info("Database engine disposed")


async def ping_db(engine: AsyncEngine) -> None:
    """Run a trivial query to verify connectivity."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database ping ok")


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables (for development/testing only)."""
    # Register the models on Base.metadata
    import feeds.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(engine: AsyncEngine) -> None:
    """Drop all tables (for testing only)."""
    import feeds.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
