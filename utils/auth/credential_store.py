"""
Credential store.

Registration, login, session verification, password change and the
email-based password recovery flow. Every public operation takes the
request's ``AsyncSession`` and owns its transaction.

Recovery is a three step exchange:

1. ``request_password_reset`` stores the SHA-256 of a random secret and
   emails the raw secret as a link. The caller always gets the same
   acknowledgement, whether or not the email is registered.
2. ``verify_reset_token`` trades a valid secret for a short-lived reset
   authorization signed with its own key.
3. ``consume_reset_token`` checks the authorization, burns the stored
   token and writes the new hash in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Callable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.base import utcnow
from database.models.account import Account, AccountRole
from database.operations import account_ops, password_reset_ops
from utils.auth.jwt_handler import JWTHandler
from utils.auth.password import hash_password, hash_password_sync, verify_password, needs_rehash
from utils.email import EmailService
from utils.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    PasswordMismatchError,
    InvalidOrExpiredTokenError,
    InvalidParticipantsError,
    translate_errors,
)

logger = logging.getLogger(__name__)

RESET_ACK_MESSAGE = "If an account exists, a reset link has been sent to that email."
RESET_EMAIL_WARNING = "Reset email could not be delivered"


@dataclass
class AuthResult:
    """Account plus the session token issued for it."""
    account: Account
    token: str


@dataclass
class PasswordResetAck:
    """
    Acknowledgement for a reset request.

    ``message`` is identical for known and unknown emails. ``warning`` is
    set only when a token was issued but the email could not be sent; it is
    for operators and is not forwarded to HTTP callers.
    """
    message: str = RESET_ACK_MESSAGE
    warning: Optional[str] = None


class CredentialStore:
    """Identity and credential operations."""

    def __init__(
        self,
        jwt_handler: JWTHandler,
        email_service: EmailService,
        reset_token_ttl: timedelta = timedelta(minutes=15),
        bcrypt_rounds: Optional[int] = None,
        clock: Callable = utcnow,
    ):
        self.jwt = jwt_handler
        self.email_service = email_service
        self.reset_token_ttl = reset_token_ttl
        self.bcrypt_rounds = bcrypt_rounds
        self.clock = clock
        # Hashed eagerly: every unknown-email login costs exactly one verify
        self._dummy_hash = hash_password_sync("not-a-real-password", bcrypt_rounds)

    @classmethod
    def from_settings(cls, settings, email_service: Optional[EmailService] = None) -> "CredentialStore":
        """Build a store wired to the application settings."""
        return cls(
            jwt_handler=JWTHandler.from_settings(settings),
            email_service=email_service or EmailService(settings),
            reset_token_ttl=timedelta(minutes=settings.password_reset_token_expire_minutes),
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    def _issue_session(self, account: Account, remember_me: bool = False) -> str:
        return self.jwt.create_session_token(
            account.id, AccountRole(account.role).value, remember_me=remember_me
        )

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    @translate_errors("register")
    async def register(
        self,
        session: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: str,
        phone: Optional[str] = None,
        **profile,
    ) -> AuthResult:
        """
        Create an account and sign it in.

        Args:
            session: Database session
            name: Display name
            email: Email address, unique case-insensitively
            password: Plain text password
            role: ``client`` or ``mentor``
            phone: Optional phone number
            **profile: Optional role attributes (specialization, bio, issues...)

        Returns:
            AuthResult with the new account and a session token

        Raises:
            DuplicateEmailError: if the email is already registered
        """
        try:
            account_role = AccountRole(role)
        except ValueError:
            raise InvalidParticipantsError("Role must be client or mentor") from None
        if await account_ops.get_account_by_email(session, email) is not None:
            raise DuplicateEmailError()

        password_hash = await hash_password(password, self.bcrypt_rounds)
        try:
            account = await account_ops.create_account(
                session,
                name=name,
                email=email,
                password_hash=password_hash,
                role=account_role,
                phone=phone,
                profile=profile,
            )
            await session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await session.rollback()
            raise DuplicateEmailError() from e

        logger.info(f"✅ Registered {account_role.value} account id={account.id}")
        return AuthResult(account=account, token=self._issue_session(account))

    @translate_errors("authenticate")
    async def authenticate(
        self,
        session: AsyncSession,
        email: str,
        password: str,
        remember_me: bool = False,
    ) -> AuthResult:
        """
        Check an email/password pair and issue a session token.

        Unknown emails and wrong passwords fail identically and take the
        same bcrypt time.

        Raises:
            InvalidCredentialsError: on any mismatch
        """
        account = await account_ops.get_account_by_email(session, email)
        if account is None:
            await verify_password(password, self._dummy_hash)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        if not await verify_password(password, account.password_hash):
            logger.info(f"Login failed: wrong password for account id={account.id}")
            raise InvalidCredentialsError()

        if needs_rehash(account.password_hash, self.bcrypt_rounds):
            account.password_hash = await hash_password(password, self.bcrypt_rounds)
            await session.commit()
            logger.info(f"Upgraded password hash cost for account id={account.id}")

        logger.info(f"✅ Login for account id={account.id}")
        return AuthResult(account=account, token=self._issue_session(account, remember_me))

    @translate_errors("verify_session")
    async def verify_session(self, session: AsyncSession, token: str) -> Account:
        """
        Resolve a session token to its account.

        Raises:
            InvalidCredentialsError: bad or expired token, or account gone
        """
        payload = self.jwt.verify_session_token(token)
        account = await account_ops.get_account_by_id(session, payload["account_id"])
        if account is None:
            raise InvalidCredentialsError("Could not validate credentials")
        return account

    # ------------------------------------------------------------------
    # Account maintenance
    # ------------------------------------------------------------------

    @translate_errors("change_password")
    async def change_password(
        self,
        session: AsyncSession,
        account: Account,
        current_password: str,
        new_password: str,
        confirmation: str,
    ) -> None:
        """
        Replace the password of a signed-in account.

        Raises:
            InvalidCredentialsError: if ``current_password`` is wrong
            PasswordMismatchError: if the new password and confirmation differ
        """
        if not await verify_password(current_password, account.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        if new_password != confirmation:
            raise PasswordMismatchError()

        account.password_hash = await hash_password(new_password, self.bcrypt_rounds)
        await session.commit()
        logger.info(f"✅ Password changed for account id={account.id}")

    @translate_errors("update_profile")
    async def update_profile(
        self,
        session: AsyncSession,
        account: Account,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        **profile,
    ) -> Account:
        """
        Update name, email, phone and the role's optional attributes.

        Role is never changed here. Attributes of the other role's group are
        ignored.

        Raises:
            DuplicateEmailError: if ``email`` belongs to another account
        """
        if email is not None:
            if await account_ops.email_taken_by_other(session, email, account.id):
                raise DuplicateEmailError()
            account.email = account_ops.normalize_email(email)
        if name is not None and name.strip():
            account.name = name.strip()
        if phone is not None:
            account.phone = phone.strip() or None
        account_ops.apply_profile(account, profile)

        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise DuplicateEmailError() from e
        return account

    # ------------------------------------------------------------------
    # Password recovery
    # ------------------------------------------------------------------

    @translate_errors("request_password_reset")
    async def request_password_reset(self, session: AsyncSession, email: str) -> PasswordResetAck:
        """
        Issue a reset token and email its link.

        The token is committed before the email is attempted, so a mail
        outage never loses it.

        Returns:
            PasswordResetAck with the generic message
        """
        account = await account_ops.get_account_by_email(session, email)
        if account is None:
            logger.info("Password reset requested for unknown email")
            return PasswordResetAck()

        raw_secret = password_reset_ops.generate_reset_secret()
        await password_reset_ops.create_reset_token(
            session,
            account.id,
            raw_secret,
            ttl=self.reset_token_ttl,
            now=self.clock(),
        )
        await session.commit()
        logger.info(f"✅ Password reset token issued for account id={account.id}")

        try:
            sent = await run_in_threadpool(
                self.email_service.send_password_reset_email,
                account.email,
                account.name,
                raw_secret,
            )
        except Exception as e:
            logger.error(f"❌ Reset email dispatch raised for account id={account.id}: {e}", exc_info=True)
            sent = False

        if not sent:
            logger.warning(f"⚠️  Reset email not delivered for account id={account.id}")
            return PasswordResetAck(warning=RESET_EMAIL_WARNING)
        return PasswordResetAck()

    @translate_errors("verify_reset_token")
    async def verify_reset_token(self, session: AsyncSession, raw_secret: str) -> str:
        """
        Exchange a reset secret for a reset authorization.

        Returns:
            Encoded reset authorization

        Raises:
            InvalidOrExpiredTokenError: unknown, used or expired secret
        """
        if not raw_secret:
            raise InvalidOrExpiredTokenError()
        reset_token = await password_reset_ops.get_valid_reset_token(
            session, raw_secret, now=self.clock()
        )
        if reset_token is None:
            raise InvalidOrExpiredTokenError()
        return self.jwt.create_reset_authorization(reset_token.id)

    @translate_errors("consume_reset_token")
    async def consume_reset_token(
        self,
        session: AsyncSession,
        reset_authorization: str,
        new_password: str,
    ) -> None:
        """
        Set a new password using a reset authorization.

        The stored token is re-checked and burned in the same transaction
        that writes the new hash; a second consumer fails.

        Raises:
            InvalidOrExpiredTokenError: bad authorization or token already used/expired
        """
        reset_token_id = self.jwt.verify_reset_authorization(reset_authorization)
        now = self.clock()

        reset_token = await password_reset_ops.get_valid_reset_token_by_id(session, reset_token_id, now=now)
        if reset_token is None:
            raise InvalidOrExpiredTokenError()
        account_id = reset_token.account_id
        account = await account_ops.get_account_by_id(session, account_id)
        if account is None:
            raise InvalidOrExpiredTokenError()

        new_hash = await hash_password(new_password, self.bcrypt_rounds)

        if not await password_reset_ops.mark_token_as_used(session, reset_token_id, now=now):
            await session.rollback()
            logger.warning(f"⚠️  Reset token {reset_token_id} consumed concurrently")
            raise InvalidOrExpiredTokenError()

        account.password_hash = new_hash
        await session.commit()
        logger.info(f"✅ Password reset completed for account id={account_id}")

    @translate_errors("purge_expired_reset_tokens")
    async def purge_expired_reset_tokens(self, session: AsyncSession) -> int:
        """Delete used and expired reset tokens. Returns the count removed."""
        return await password_reset_ops.delete_expired_tokens(session, now=self.clock())


__all__ = [
    "CredentialStore",
    "AuthResult",
    "PasswordResetAck",
    "RESET_ACK_MESSAGE",
]
