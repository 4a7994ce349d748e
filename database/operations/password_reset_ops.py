"""
Password Reset Token Operations

Database operations for managing password reset tokens. Only the SHA-256
digest of a secret is ever stored or queried. Helpers flush but do not
commit, except ``delete_expired_tokens`` which is a standalone cleanup.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_
from typing import Optional
import hashlib
import secrets
import logging
from datetime import datetime, timedelta

from database.models.base import utcnow
from database.models.password_reset_token import PasswordResetToken

logger = logging.getLogger(__name__)


def generate_reset_secret() -> str:
    """
    Generate a secure random secret for password reset.

    Returns:
        64 hex characters (32 random bytes)
    """
    return secrets.token_hex(32)


def hash_reset_secret(raw_secret: str) -> str:
    """SHA-256 hex digest of a raw secret."""
    return hashlib.sha256(raw_secret.encode("utf-8")).hexdigest()


async def create_reset_token(
    session: AsyncSession,
    account_id: int,
    raw_secret: str,
    ttl: timedelta,
    now: Optional[datetime] = None,
) -> PasswordResetToken:
    """
    Stage a new reset token and retire any earlier unused ones.

    Args:
        session: Database session
        account_id: Owner of the token
        raw_secret: Secret that goes into the emailed link
        ttl: Lifetime of the token
        now: Override for the current time

    Returns:
        The flushed PasswordResetToken
    """
    now = now or utcnow()

    # Only the newest link for an account stays actionable
    await session.execute(
        update(PasswordResetToken)
        .where(
            and_(
                PasswordResetToken.account_id == account_id,
                PasswordResetToken.is_used.is_(False),
            )
        )
        .values(is_used=True, used_at=now)
    )

    reset_token = PasswordResetToken(
        account_id=account_id,
        token_hash=hash_reset_secret(raw_secret),
        is_used=False,
        created_at=now,
        expires_at=now + ttl,
    )
    session.add(reset_token)
    await session.flush()
    return reset_token


async def get_valid_reset_token(
    session: AsyncSession,
    raw_secret: str,
    now: Optional[datetime] = None,
) -> Optional[PasswordResetToken]:
    """
    Get a valid (not used, not expired) reset token by its raw secret.

    Returns:
        PasswordResetToken if valid, None otherwise
    """
    now = now or utcnow()
    result = await session.execute(
        select(PasswordResetToken).where(
            and_(
                PasswordResetToken.token_hash == hash_reset_secret(raw_secret),
                PasswordResetToken.is_used.is_(False),
                PasswordResetToken.expires_at > now,
            )
        )
    )
    return result.scalars().first()


async def get_valid_reset_token_by_id(
    session: AsyncSession,
    token_id: int,
    now: Optional[datetime] = None,
) -> Optional[PasswordResetToken]:
    """Get a reset token by id if it is still unused and unexpired."""
    now = now or utcnow()
    result = await session.execute(
        select(PasswordResetToken).where(
            and_(
                PasswordResetToken.id == token_id,
                PasswordResetToken.is_used.is_(False),
                PasswordResetToken.expires_at > now,
            )
        )
    )
    return result.scalars().first()


async def mark_token_as_used(
    session: AsyncSession,
    token_id: int,
    now: Optional[datetime] = None,
) -> bool:
    """
    Consume a reset token.

    The update only matches an unused, unexpired row, so of two racing
    consumers exactly one sees ``True``.

    Returns:
        True if this call consumed the token
    """
    now = now or utcnow()
    result = await session.execute(
        update(PasswordResetToken)
        .where(
            and_(
                PasswordResetToken.id == token_id,
                PasswordResetToken.is_used.is_(False),
                PasswordResetToken.expires_at > now,
            )
        )
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_expired_tokens(session: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Delete all expired or used reset tokens (cleanup).

    Returns:
        Number of deleted tokens
    """
    now = now or utcnow()
    try:
        result = await session.execute(
            delete(PasswordResetToken).where(
                or_(
                    PasswordResetToken.expires_at <= now,
                    PasswordResetToken.is_used.is_(True),
                )
            )
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    count = result.rowcount or 0
    logger.info(f"✅ Deleted {count} expired/used reset tokens")
    return count


__all__ = [
    'generate_reset_secret',
    'hash_reset_secret',
    'create_reset_token',
    'get_valid_reset_token',
    'get_valid_reset_token_by_id',
    'mark_token_as_used',
    'delete_expired_tokens',
]
