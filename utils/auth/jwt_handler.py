"""
JWT token handling for sessions and password-reset authorization.

Two credential kinds share the same shape (a signed, expiring payload) but
live in separate namespaces: each is signed with its own secret and carries
a ``purpose`` claim, so neither verifier accepts the other's tokens.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import JWTError, jwt, ExpiredSignatureError

from utils.errors import InvalidCredentialsError, InvalidOrExpiredTokenError

logger = logging.getLogger(__name__)

SESSION_PURPOSE = "session"
RESET_PURPOSE = "password_reset"
SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")


class JWTHandler:
    """
    Issues and verifies session tokens and reset authorizations.

    All secret material and lifetimes are passed in; nothing is read from
    the environment here.
    """

    def __init__(
        self,
        secret_key: str,
        reset_secret_key: str,
        algorithm: str = "HS256",
        session_expire: timedelta = timedelta(days=1),
        remember_me_expire: timedelta = timedelta(days=30),
        reset_expire: timedelta = timedelta(minutes=10),
        leeway_seconds: int = 60,
    ):
        if not secret_key or len(secret_key) < 32:
            raise ValueError("secret_key must be at least 32 characters long")
        if not reset_secret_key or len(reset_secret_key) < 32:
            raise ValueError("reset_secret_key must be at least 32 characters long")
        if secret_key == reset_secret_key:
            raise ValueError("reset_secret_key must differ from secret_key")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")

        self._secret_key = secret_key
        self._reset_secret_key = reset_secret_key
        self.algorithm = algorithm
        self.session_expire = session_expire
        self.remember_me_expire = remember_me_expire
        self.reset_expire = reset_expire
        self.leeway_seconds = max(0, leeway_seconds)

    @classmethod
    def from_settings(cls, settings) -> "JWTHandler":
        """Build a handler from the application settings object."""
        return cls(
            secret_key=settings.secret_key,
            reset_secret_key=settings.reset_secret_key,
            algorithm=settings.jwt_algorithm,
            session_expire=timedelta(days=settings.session_token_expire_days),
            remember_me_expire=timedelta(days=settings.remember_me_expire_days),
            reset_expire=timedelta(minutes=settings.reset_authorization_expire_minutes),
            leeway_seconds=settings.jwt_leeway_seconds,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _encode(self, claims: Dict[str, Any], key: str, expires_delta: timedelta) -> str:
        now = datetime.now(timezone.utc)
        to_encode = dict(claims)
        to_encode.update({
            "exp": now + expires_delta,
            "iat": now,
            "nbf": now,
        })
        return jwt.encode(to_encode, key, algorithm=self.algorithm)

    def _decode(self, token: str, key: str) -> Dict[str, Any]:
        return jwt.decode(
            token,
            key,
            algorithms=[self.algorithm],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iat": True,
                "require_exp": True,
                "leeway": self.leeway_seconds,
            },
        )

    # ------------------------------------------------------------------
    # Session credentials
    # ------------------------------------------------------------------

    def create_session_token(
        self,
        account_id: int,
        role: str,
        remember_me: bool = False,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a session token for an account.

        Args:
            account_id: Account primary key
            role: Account role, informational only
            remember_me: Use the long-lived expiry
            expires_delta: Explicit lifetime, overrides both defaults

        Returns:
            Encoded JWT
        """
        if expires_delta is None:
            expires_delta = self.remember_me_expire if remember_me else self.session_expire
        logger.debug(f"Creating session token for account_id={account_id}")
        return self._encode(
            {"sub": str(account_id), "role": role, "purpose": SESSION_PURPOSE},
            self._secret_key,
            expires_delta,
        )

    def verify_session_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a session token.

        Returns:
            Decoded payload with ``account_id`` added as an int

        Raises:
            InvalidCredentialsError: bad signature, expired, wrong purpose
        """
        try:
            payload = self._decode(token, self._secret_key)
        except ExpiredSignatureError as e:
            logger.info("Session token expired")
            raise InvalidCredentialsError("Session expired") from e
        except JWTError as e:
            logger.warning(f"Session token validation failed: {type(e).__name__}")
            raise InvalidCredentialsError("Could not validate credentials") from e

        if payload.get("purpose") != SESSION_PURPOSE:
            logger.warning("Token with wrong purpose presented as a session")
            raise InvalidCredentialsError("Could not validate credentials")
        try:
            payload["account_id"] = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidCredentialsError("Could not validate credentials") from e
        return payload

    # ------------------------------------------------------------------
    # Reset authorizations
    # ------------------------------------------------------------------

    def create_reset_authorization(
        self,
        reset_token_id: int,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a short-lived authorization to set a new password."""
        return self._encode(
            {"rid": reset_token_id, "purpose": RESET_PURPOSE},
            self._reset_secret_key,
            expires_delta or self.reset_expire,
        )

    def verify_reset_authorization(self, token: str) -> int:
        """
        Verify a reset authorization.

        Returns:
            The id of the underlying reset token row

        Raises:
            InvalidOrExpiredTokenError: on any failure
        """
        try:
            payload = self._decode(token, self._reset_secret_key)
        except JWTError as e:
            logger.info(f"Reset authorization rejected: {type(e).__name__}")
            raise InvalidOrExpiredTokenError() from e

        if payload.get("purpose") != RESET_PURPOSE:
            raise InvalidOrExpiredTokenError()
        reset_token_id = payload.get("rid")
        if not isinstance(reset_token_id, int) or isinstance(reset_token_id, bool):
            raise InvalidOrExpiredTokenError()
        return reset_token_id


__all__ = [
    "JWTHandler",
    "SESSION_PURPOSE",
    "RESET_PURPOSE",
]
