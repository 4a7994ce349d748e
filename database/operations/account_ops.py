"""
Account Database Operations

Query helpers for identity records. These helpers flush but never commit;
the credential store owns transaction boundaries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, Dict, Any
import logging

from database.models.account import Account, AccountRole

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store them trimmed and lowercase."""
    return (email or "").strip().lower()


async def create_account(
    session: AsyncSession,
    name: str,
    email: str,
    password_hash: str,
    role: AccountRole,
    phone: Optional[str] = None,
    profile: Optional[Dict[str, Any]] = None,
) -> Account:
    """
    Stage a new account in the session.

    Args:
        session: Database session
        name: Display name
        email: Email (normalized here)
        password_hash: bcrypt hash, never the plaintext
        role: client or mentor
        phone: Optional phone number
        profile: Values for the role's optional attribute group

    Returns:
        The flushed Account (id assigned)

    Raises:
        sqlalchemy.exc.IntegrityError: if the email is already taken
    """
    account = Account(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=password_hash,
        role=role,
        phone=phone.strip() if phone else None,
    )
    apply_profile(account, profile or {})
    session.add(account)
    await session.flush()
    return account


def apply_profile(account: Account, profile: Dict[str, Any]) -> None:
    """Copy the role-specific optional attributes that are present in ``profile``."""
    for field in account.profile_fields():
        if field in profile and profile[field] is not None:
            setattr(account, field, profile[field])


async def get_account_by_email(session: AsyncSession, email: str) -> Optional[Account]:
    """
    Get account by email.

    Args:
        session: Database session
        email: Email in any case

    Returns:
        Account or None if not found
    """
    result = await session.execute(
        select(Account).where(Account.email == normalize_email(email))
    )
    return result.scalars().first()


async def get_account_by_id(session: AsyncSession, account_id: int) -> Optional[Account]:
    """Get account by primary key."""
    return await session.get(Account, account_id)


async def email_taken_by_other(session: AsyncSession, email: str, account_id: Optional[int]) -> bool:
    """True if another account already owns ``email``."""
    existing = await get_account_by_email(session, email)
    return existing is not None and existing.id != account_id


__all__ = [
    'normalize_email',
    'create_account',
    'apply_profile',
    'get_account_by_email',
    'get_account_by_id',
    'email_taken_by_other',
]
