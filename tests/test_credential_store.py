"""
Credential Store Tests

Registration, login, session verification, password change and profile
updates.
"""

import pytest
from unittest.mock import patch
from sqlalchemy import select

from database.models.account import Account, AccountRole
from utils.auth import CredentialStore, credential_store as credential_store_module
from utils.auth.password import hash_cost
from utils.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidParticipantsError,
    PasswordMismatchError,
    PasswordTooLongError,
)


class TestRegister:
    """Account creation."""

    async def test_register_returns_account_and_session(self, session, credential_store):
        result = await credential_store.register(
            session, "Ann", "Ann@Example.com ", "secret-pass", "mentor",
            specialization="Anxiety", bio="Ten years of practice",
        )

        assert result.account.id is not None
        assert result.account.email == "ann@example.com"
        assert result.account.role == AccountRole.MENTOR
        assert result.account.specialization == "Anxiety"

        account = await credential_store.verify_session(session, result.token)
        assert account.id == result.account.id

    async def test_password_is_stored_hashed(self, session, credential_store):
        result = await credential_store.register(session, "Ann", "ann@example.com", "secret-pass", "client")
        assert result.account.password_hash != "secret-pass"
        assert result.account.password_hash.startswith("$2b$")

    async def test_duplicate_email_rejected_case_insensitively(self, session, credential_store):
        await credential_store.register(session, "Ann", "ann@example.com", "secret-pass", "client")

        with pytest.raises(DuplicateEmailError):
            await credential_store.register(session, "Other Ann", "ANN@example.com", "secret-pass", "mentor")

        result = await session.execute(select(Account))
        assert len(result.scalars().all()) == 1

    async def test_profile_fields_of_other_role_ignored(self, session, credential_store):
        result = await credential_store.register(
            session, "Cal", "cal@example.com", "secret-pass", "client",
            issues=["sleep"], specialization="should be ignored",
        )
        assert result.account.issues == ["sleep"]
        assert result.account.specialization is None

    async def test_password_over_72_bytes_rejected(self, session, credential_store):
        with pytest.raises(PasswordTooLongError):
            await credential_store.register(session, "Ann", "ann@example.com", "p" * 73, "client")

        result = await session.execute(select(Account))
        assert result.scalars().all() == []

    async def test_unknown_role_rejected(self, session, credential_store):
        with pytest.raises(InvalidParticipantsError):
            await credential_store.register(session, "Ann", "ann@example.com", "secret-pass", "admin")


class TestAuthenticate:
    """Login."""

    async def test_login_success(self, session, credential_store, client):
        result = await credential_store.authenticate(session, "CLIENT@example.com", "Password123!")
        assert result.account.id == client.id
        assert result.token

    async def test_wrong_password_and_unknown_email_look_the_same(self, session, credential_store, client):
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await credential_store.authenticate(session, "client@example.com", "nope")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await credential_store.authenticate(session, "ghost@example.com", "nope")

        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.status_code == unknown_email.value.status_code == 401

    async def test_unknown_email_still_runs_bcrypt(self, session, credential_store):
        with patch.object(
            credential_store_module, "verify_password", wraps=credential_store_module.verify_password
        ) as spy:
            with pytest.raises(InvalidCredentialsError):
                await credential_store.authenticate(session, "ghost@example.com", "nope")
        spy.assert_called_once()

    async def test_first_unknown_email_login_only_verifies(self, session, jwt_handler, email_service):
        fresh = CredentialStore(jwt_handler=jwt_handler, email_service=email_service, bcrypt_rounds=4)
        with patch.object(
            credential_store_module, "hash_password", wraps=credential_store_module.hash_password
        ) as hash_spy, patch.object(
            credential_store_module, "verify_password", wraps=credential_store_module.verify_password
        ) as verify_spy:
            for _ in range(2):
                with pytest.raises(InvalidCredentialsError):
                    await fresh.authenticate(session, "ghost@example.com", "nope")

        hash_spy.assert_not_called()
        assert verify_spy.call_count == 2

    async def test_overlong_password_never_logs_in(self, session, credential_store, client):
        with pytest.raises(InvalidCredentialsError):
            await credential_store.authenticate(session, "client@example.com", "Password123!" + "x" * 80)

    async def test_remember_me_token_is_valid(self, session, credential_store, client):
        result = await credential_store.authenticate(
            session, "client@example.com", "Password123!", remember_me=True
        )
        account = await credential_store.verify_session(session, result.token)
        assert account.id == client.id

    async def test_low_cost_hash_upgraded_on_login(self, session, jwt_handler, email_service, client):
        stricter = CredentialStore(jwt_handler=jwt_handler, email_service=email_service, bcrypt_rounds=5)
        assert hash_cost(client.password_hash) == 4

        await stricter.authenticate(session, "client@example.com", "Password123!")

        assert hash_cost(client.password_hash) == 5
        result = await stricter.authenticate(session, "client@example.com", "Password123!")
        assert result.account.id == client.id


class TestVerifySession:
    """Session token to account resolution."""

    async def test_deleted_account_rejected(self, session, credential_store, client):
        token = credential_store.jwt.create_session_token(client.id, "client")
        await session.delete(client)
        await session.commit()

        with pytest.raises(InvalidCredentialsError):
            await credential_store.verify_session(session, token)

    async def test_reset_authorization_is_not_a_session(self, session, credential_store, client):
        token = credential_store.jwt.create_reset_authorization(1)
        with pytest.raises(InvalidCredentialsError):
            await credential_store.verify_session(session, token)


class TestChangePassword:
    """Password change for a signed-in account."""

    async def test_change_password(self, session, credential_store, client):
        await credential_store.change_password(
            session, client, "Password123!", "NewPassword456!", "NewPassword456!"
        )

        with pytest.raises(InvalidCredentialsError):
            await credential_store.authenticate(session, "client@example.com", "Password123!")
        result = await credential_store.authenticate(session, "client@example.com", "NewPassword456!")
        assert result.account.id == client.id

    async def test_wrong_current_password(self, session, credential_store, client):
        with pytest.raises(InvalidCredentialsError):
            await credential_store.change_password(
                session, client, "wrong", "NewPassword456!", "NewPassword456!"
            )

    async def test_confirmation_mismatch(self, session, credential_store, client):
        with pytest.raises(PasswordMismatchError):
            await credential_store.change_password(
                session, client, "Password123!", "NewPassword456!", "Different789!"
            )

        result = await credential_store.authenticate(session, "client@example.com", "Password123!")
        assert result.account.id == client.id


class TestUpdateProfile:
    """Profile edits."""

    async def test_update_fields(self, session, credential_store, mentor):
        account = await credential_store.update_profile(
            session, mentor, name="Maya M.", phone="555-0101", hourly_rate=80.0
        )
        assert account.name == "Maya M."
        assert account.phone == "555-0101"
        assert account.hourly_rate == 80.0
        assert account.role == AccountRole.MENTOR

    async def test_email_change_normalized(self, session, credential_store, client):
        account = await credential_store.update_profile(session, client, email=" New@Example.com ")
        assert account.email == "new@example.com"

    async def test_email_taken_by_other_account(self, session, credential_store, client, mentor):
        with pytest.raises(DuplicateEmailError):
            await credential_store.update_profile(session, client, email="mentor@example.com")

    async def test_keeping_own_email_is_fine(self, session, credential_store, client):
        account = await credential_store.update_profile(session, client, email="client@example.com")
        assert account.email == "client@example.com"

    async def test_role_is_immutable(self, client):
        with pytest.raises(ValueError):
            client.role = AccountRole.MENTOR
