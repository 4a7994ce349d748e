"""
Core Database Package

Database connection and session management.
"""

from .async_connection import (
    async_engine,
    AsyncSessionLocal,
    build_engine,
    build_sessionmaker,
    get_session,
    init_async_db,
    close_async_db,
)

__all__ = [
    'async_engine',
    'AsyncSessionLocal',
    'build_engine',
    'build_sessionmaker',
    'get_session',
    'init_async_db',
    'close_async_db',
]
