"""
Database Connection Management

Async SQLAlchemy 2.0 engine for reading warehouse tables.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable, List, Optional

import structlog
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from sales_analytics.config import get_settings

logger = structlog.get_logger(__name__)

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        url: SQLAlchemy URL; defaults to the configured warehouse database

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()

    _engine = create_async_engine(
        url or settings.database.async_url,
        echo=settings.database.echo,
        pool_pre_ping=True,
        poolclass=NullPool,
    )

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    try:
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(
            "Database connection established",
            host=settings.database.host,
            database=settings.database.db,
        )
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        await close_database()
        raise

    return _engine


async def close_database() -> None:
    """Dispose of the engine and its connections."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection pool closed")


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


async def missing_tables(engine: AsyncEngine, tables: Iterable[str]) -> List[str]:
    """Names in ``tables`` that do not exist in the engine's default schema"""
    async with engine.connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return [name for name in tables if name not in existing]


@asynccontextmanager
async def get_db(engine: Optional[AsyncEngine] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a read session.

    Uses a session bound to ``engine`` when given, otherwise one from the
    global factory.

    Example:
        async with get_db() as db:
            result = await db.execute(query)
    """
    if engine is not None:
        factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    elif _async_session_factory is not None:
        factory = _async_session_factory
    else:
        logger.error("Database not initialized when get_db() called")
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = factory()
    try:
        yield session
    finally:
        await session.close()
