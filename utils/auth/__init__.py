"""Authentication utilities."""

from .jwt_handler import JWTHandler, SESSION_PURPOSE, RESET_PURPOSE
from .password import (
    hash_password,
    verify_password,
    hash_password_sync,
    verify_password_sync,
    needs_rehash,
    fits_bcrypt,
)
from .credential_store import (
    CredentialStore,
    AuthResult,
    PasswordResetAck,
    RESET_ACK_MESSAGE,
)

__all__ = [
    "JWTHandler",
    "SESSION_PURPOSE",
    "RESET_PURPOSE",
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "needs_rehash",
    "fits_bcrypt",
    "CredentialStore",
    "AuthResult",
    "PasswordResetAck",
    "RESET_ACK_MESSAGE",
]
