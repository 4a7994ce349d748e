"""
Async Database Connection and Session Management

Provides async SQLAlchemy engine and session management for FastAPI.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool
import logging

from config.settings import settings
from database.models import create_tables

logger = logging.getLogger(__name__)


def build_engine(url: str = None) -> AsyncEngine:
    """
    Create an async engine for the configured database.

    PostgreSQL gets a sized connection pool; SQLite (development and
    tests) shares a single connection when it lives in memory.
    """
    url = url or settings.async_database_url
    if url.startswith("sqlite"):
        if ":memory:" in url:
            return create_async_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=settings.db_echo,
            )
        return create_async_engine(url, echo=settings.db_echo)
    return create_async_engine(
        url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
        echo=settings.db_echo,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
async_engine = build_engine()

# Create async session factory
AsyncSessionLocal = build_sessionmaker(async_engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database sessions.

    Usage:
        @router.get("/appointments")
        async def list_appointments(session: AsyncSession = Depends(get_session)):
            ...

    Yields:
        AsyncSession
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Database session error: {type(e).__name__}")
            raise


async def init_async_db() -> bool:
    """
    Initialize the database: verify connectivity and create missing tables.

    Should be called during app startup.
    """
    try:
        await create_tables(async_engine)
        logger.info("✅ Async database engine initialized")
        return True
    except Exception as e:
        logger.error(f"❌ Async database initialization failed: {e}")
        return False


async def close_async_db():
    """
    Close async database connection.

    Should be called during app shutdown.
    """
    await async_engine.dispose()
    logger.info("🔌 Async database engine disposed")


__all__ = [
    'async_engine',
    'AsyncSessionLocal',
    'build_engine',
    'build_sessionmaker',
    'get_session',
    'init_async_db',
    'close_async_db',
]
