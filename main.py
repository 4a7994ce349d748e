"""
Main entry point for the Clarity Call booking service.

Usage:
    python main.py                      # Serve the API
    python main.py --port 9000 --reload # Serve with auto-reload
    python main.py --init-db            # Create tables and exit
    python main.py --purge-reset-tokens # Delete used/expired reset tokens and exit
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from config import settings


async def _init_db() -> bool:
    from database.core.async_connection import init_async_db, close_async_db
    try:
        return await init_async_db()
    finally:
        await close_async_db()


async def _purge_reset_tokens() -> int:
    from database.core.async_connection import AsyncSessionLocal, close_async_db
    from database.operations import password_reset_ops
    try:
        async with AsyncSessionLocal() as session:
            return await password_reset_ops.delete_expired_tokens(session)
    finally:
        await close_async_db()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Clarity Call booking service")
    parser.add_argument("--host", default=settings.api_host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Bind port")
    parser.add_argument("--reload", action="store_true", default=settings.api_reload, help="Auto-reload on code changes")
    parser.add_argument("--init-db", action="store_true", help="Create database tables and exit")
    parser.add_argument("--purge-reset-tokens", action="store_true", help="Delete used or expired reset tokens and exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    from utils.monitoring import setup_logging
    setup_logging()

    if args.init_db:
        ok = asyncio.run(_init_db())
        print("✅ Database tables ready" if ok else "❌ Database initialization failed")
        return 0 if ok else 1

    if args.purge_reset_tokens:
        count = asyncio.run(_purge_reset_tokens())
        print(f"✅ Removed {count} reset tokens")
        return 0

    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
