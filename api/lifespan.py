"""
Application lifespan management.

Sets up logging and the database on startup and releases the connection
pool on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from api.dependencies import get_credential_store
from database.core.async_connection import init_async_db, close_async_db, AsyncSessionLocal
from database.operations import password_reset_ops
from utils.monitoring import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Structured logging
    - Database tables
    - Cleanup of stale password reset tokens
    - Credential store, so its dummy hash exists before the first login
    """
    setup_logging()
    logger.info("🚀 Starting Clarity Call Booking API")

    # =========================================================================
    # Database Initialization
    # =========================================================================
    if await init_async_db():
        logger.info("✅ Database connection established")
        async with AsyncSessionLocal() as session:
            try:
                await password_reset_ops.delete_expired_tokens(session)
            except Exception as e:
                logger.warning(f"⚠️  Reset token cleanup failed: {type(e).__name__}: {e}")
    else:
        logger.warning("⚠️  Database initialization failed; requests needing it will error")

    build_store = app.dependency_overrides.get(get_credential_store, get_credential_store)
    build_store()
    logger.info("✅ Credential store ready")

    logger.info(
        "✅ Clarity Call Booking API ready",
        database="sqlite" if settings.is_sqlite else "postgresql",
        email_enabled=settings.email_enabled,
    )

    yield

    # =========================================================================
    # Cleanup
    # =========================================================================
    logger.info("🛑 Shutting down Clarity Call Booking API")
    await close_async_db()
    logger.info("✅ Shutdown complete")
