"""
Authentication Endpoints

Registration, login, profile, password change and the email-based
password recovery flow. All rules live in ``CredentialStore``; these
handlers only translate HTTP to calls and results back to JSON.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_credential_store,
    get_current_account,
    forgot_password_quota,
)
from api.models import (
    RegisterRequest,
    LoginRequest,
    UpdateProfileRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    AccountResponse,
    AuthResponse,
    ResetAuthorizationResponse,
    MessageResponse,
)
from database.core.async_connection import get_session
from database.models.account import Account
from utils.auth import CredentialStore, AuthResult

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        token=result.token,
        account=AccountResponse.model_validate(result.account),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Create a client or mentor account.

    Returns a session token so the new account is signed in immediately.
    """
    result = await store.register(
        session,
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role,
        phone=request.phone,
        **request.profile(),
    )
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """Exchange email and password for a session token."""
    result = await store.authenticate(
        session, request.email, request.password, remember_me=request.remember_me
    )
    return _auth_response(result)


@router.get("/me", response_model=AccountResponse)
async def me(account: Account = Depends(get_current_account)):
    """Current account."""
    return account


@router.put("/profile", response_model=AccountResponse)
async def update_profile(
    request: UpdateProfileRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """Update name, email, phone and role-specific profile fields."""
    return await store.update_profile(
        session,
        account,
        name=request.name,
        email=request.email,
        phone=request.phone,
        **request.profile(),
    )


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """Change password; requires the current one."""
    await store.change_password(
        session,
        account,
        request.current_password,
        request.new_password,
        request.confirm_password,
    )
    return MessageResponse(message="Password updated successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(forgot_password_quota)],
)
async def forgot_password(
    request: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Start password recovery.

    The response is the same whether or not the email is registered, and
    delivery problems are only logged.
    """
    ack = await store.request_password_reset(session, request.email)
    return MessageResponse(message=ack.message)


@router.get("/verify-reset-token", response_model=ResetAuthorizationResponse)
async def verify_reset_token(
    token: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """Check the secret from the emailed link and return a reset authorization."""
    reset_authorization = await store.verify_reset_token(session, token)
    return ResetAuthorizationResponse(reset_token=reset_authorization)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """Set a new password using the reset authorization."""
    await store.consume_reset_token(session, request.reset_token, request.new_password)
    return MessageResponse(message="Password has been reset successfully")
