"""
Async SQLAlchemy engine and session management.

One session is one unit of work: the ingestion port opens a session per
inbound message and commits or rolls back as a whole.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global async engine."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.SQLALCHEMY_URL,
            echo=settings.DB_ECHO,
            pool_pre_ping=True,
        )
    return _engine


def async_session_maker() -> AsyncSession:
    """Open a new session bound to the global engine."""
    factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return factory()


async def init_db() -> None:
    """Create tables that do not exist yet."""
    # Import models so their tables are registered on Base.metadata
    import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", tables=sorted(Base.metadata.tables))


async def close_db() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("database_closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session."""
    async with async_session_maker() as session:
        yield session
