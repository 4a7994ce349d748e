"""
API Dependencies.

FastAPI dependencies for authentication, database access, and common utilities.
"""

from typing import Optional
from fastapi import Header, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database.core.async_connection import get_session
from database.models.account import Account
from utils.auth import CredentialStore
from utils.errors import InvalidCredentialsError, RateLimitError
from utils.monitoring import get_logger
from utils.rate_limiting import check_forgot_password_rate_limit

logger = get_logger(__name__)


# ============================================================================
# Credential Store
# ============================================================================

_credential_store: Optional[CredentialStore] = None


def get_credential_store() -> CredentialStore:
    """
    Get the process-wide credential store, built from settings on first use.

    Tests override this dependency to inject a store with a mocked email
    service.
    """
    global _credential_store
    if _credential_store is None:
        _credential_store = CredentialStore.from_settings(settings)
    return _credential_store


# ============================================================================
# Session Authentication
# ============================================================================

def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise InvalidCredentialsError("Not authenticated")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidCredentialsError("Not authenticated")
    return token.strip()


async def get_current_account(
    authorization: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
) -> Account:
    """
    Resolve the ``Authorization: Bearer <token>`` header to an account.

    Raises:
        InvalidCredentialsError: missing, malformed, expired or unknown token
    """
    return await store.verify_session(session, _bearer_token(authorization))


# ============================================================================
# Request helpers
# ============================================================================

def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    ``X-Forwarded-For`` is honoured only when the direct peer is one of
    ``settings.trusted_proxy_ips``. The header is read right to left and
    the first hop that is not a trusted proxy is the client; earlier hops
    are caller-supplied and ignored.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = settings.trusted_proxy_ips
    forwarded = request.headers.get("X-Forwarded-For")
    if peer not in trusted or not forwarded:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


async def forgot_password_quota(request: Request) -> None:
    """
    Enforce the forgot-password limit per client IP.

    Raises:
        RateLimitError: when the IP has used up its quota
    """
    ip = get_client_ip(request)
    result = await check_forgot_password_rate_limit(ip)
    if not result.allowed:
        logger.warning("Forgot-password rate limit hit", ip=ip, retry_after=result.retry_after)
        raise RateLimitError(retry_after=result.retry_after)
