"""
Password hashing.

bcrypt with an explicit cost factor. Hashing and verification run in a
thread pool so the event loop is never blocked by the key stretching.
"""

import logging
from typing import Optional

import bcrypt
from fastapi.concurrency import run_in_threadpool

from config import settings
from utils.errors import PasswordTooLongError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; longer input is refused, not truncated
BCRYPT_MAX_BYTES = 72


def fits_bcrypt(password: str) -> bool:
    """True if the UTF-8 encoding of ``password`` is within bcrypt's 72 bytes."""
    return len(password.encode('utf-8')) <= BCRYPT_MAX_BYTES


def hash_password_sync(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with bcrypt on the calling thread.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (defaults to settings.bcrypt_rounds)

    Returns:
        Hashed password string

    Raises:
        PasswordTooLongError: if the password is over 72 bytes
    """
    if not fits_bcrypt(password):
        raise PasswordTooLongError()
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash on the calling thread.

    Comparison is done by ``bcrypt.checkpw`` (constant time). Input over
    72 bytes never matches.
    """
    if not fits_bcrypt(plain_password):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        logger.warning("⚠️  Stored password hash is malformed")
        return False


async def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password using bcrypt in a thread pool to avoid blocking.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    return await run_in_threadpool(hash_password_sync, password, rounds)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash in a thread pool.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return await run_in_threadpool(verify_password_sync, plain_password, hashed_password)


def hash_cost(hashed_password: str) -> int:
    """Read the cost factor out of a ``$2b$12$...`` hash."""
    try:
        return int(hashed_password.split("$")[2])
    except (IndexError, ValueError):
        return 0


def needs_rehash(hashed_password: str, rounds: Optional[int] = None) -> bool:
    """
    Check if a password hash was made with a lower cost than configured.

    Args:
        hashed_password: Hashed password to check
        rounds: Target cost factor

    Returns:
        True if hash needs update, False otherwise
    """
    return hash_cost(hashed_password) < (rounds or settings.bcrypt_rounds)


__all__ = [
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "needs_rehash",
    "hash_cost",
    "fits_bcrypt",
    "BCRYPT_MAX_BYTES",
]
