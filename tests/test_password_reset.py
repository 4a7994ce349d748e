"""
Password Reset Flow Tests

request -> verify -> consume, including the enumeration-safe
acknowledgement, hashed storage, expiry, single use and email failure.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from database.models.base import utcnow
from database.models.password_reset_token import PasswordResetToken
from database.operations import password_reset_ops
from utils.auth import RESET_ACK_MESSAGE
from utils.errors import InvalidCredentialsError, InvalidOrExpiredTokenError


def _sent_secret(email_service) -> str:
    """Raw secret passed to the (mocked) email service on the last call."""
    args, _ = email_service.send_password_reset_email.call_args
    return args[2]


async def _all_tokens(session):
    result = await session.execute(
        select(PasswordResetToken).execution_options(populate_existing=True)
    )
    return result.scalars().all()


class TestRequestPasswordReset:
    """Issuing reset tokens."""

    async def test_known_and_unknown_email_get_the_same_ack(self, session, credential_store, client):
        known = await credential_store.request_password_reset(session, "client@example.com")
        unknown = await credential_store.request_password_reset(session, "ghost@example.com")

        assert known.message == unknown.message == RESET_ACK_MESSAGE
        assert known.warning is None and unknown.warning is None

    async def test_unknown_email_creates_nothing_and_sends_nothing(self, session, credential_store, email_service):
        await credential_store.request_password_reset(session, "ghost@example.com")

        assert await _all_tokens(session) == []
        email_service.send_password_reset_email.assert_not_called()

    async def test_only_hash_of_secret_is_stored(self, session, credential_store, email_service, client):
        await credential_store.request_password_reset(session, "client@example.com")

        raw_secret = _sent_secret(email_service)
        tokens = await _all_tokens(session)
        assert len(tokens) == 1
        assert len(raw_secret) == 64
        assert tokens[0].token_hash == password_reset_ops.hash_reset_secret(raw_secret)
        assert tokens[0].token_hash != raw_secret
        assert tokens[0].account_id == client.id

    async def test_email_goes_to_the_account(self, session, credential_store, email_service, client):
        await credential_store.request_password_reset(session, "Client@Example.com")

        args, _ = email_service.send_password_reset_email.call_args
        assert args[0] == "client@example.com"
        assert args[1] == client.name

    async def test_email_failure_keeps_token_and_warns(self, session, credential_store, email_service, client):
        email_service.send_password_reset_email.return_value = False

        ack = await credential_store.request_password_reset(session, "client@example.com")

        assert ack.message == RESET_ACK_MESSAGE
        assert ack.warning
        assert len(await _all_tokens(session)) == 1

    async def test_email_exception_is_a_warning(self, session, credential_store, email_service, client):
        email_service.send_password_reset_email.side_effect = OSError("smtp down")

        ack = await credential_store.request_password_reset(session, "client@example.com")

        assert ack.warning
        assert len(await _all_tokens(session)) == 1

    async def test_new_request_retires_older_link(self, session, credential_store, email_service, client):
        await credential_store.request_password_reset(session, "client@example.com")
        first_secret = _sent_secret(email_service)
        await credential_store.request_password_reset(session, "client@example.com")
        second_secret = _sent_secret(email_service)

        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.verify_reset_token(session, first_secret)
        assert await credential_store.verify_reset_token(session, second_secret)


class TestVerifyAndConsume:
    """Exchanging the secret and setting the new password."""

    async def _reset_authorization(self, session, credential_store, email_service):
        await credential_store.request_password_reset(session, "client@example.com")
        return await credential_store.verify_reset_token(session, _sent_secret(email_service))

    async def test_full_flow(self, session, credential_store, email_service, client):
        authorization = await self._reset_authorization(session, credential_store, email_service)

        await credential_store.consume_reset_token(session, authorization, "BrandNew123!")

        result = await credential_store.authenticate(session, "client@example.com", "BrandNew123!")
        assert result.account.id == client.id
        with pytest.raises(InvalidCredentialsError):
            await credential_store.authenticate(session, "client@example.com", "Password123!")

    async def test_token_is_single_use(self, session, credential_store, email_service, client):
        await credential_store.request_password_reset(session, "client@example.com")
        raw_secret = _sent_secret(email_service)
        authorization = await credential_store.verify_reset_token(session, raw_secret)

        await credential_store.consume_reset_token(session, authorization, "BrandNew123!")

        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.consume_reset_token(session, authorization, "Another123!")
        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.verify_reset_token(session, raw_secret)

        tokens = await _all_tokens(session)
        assert tokens[0].is_used
        assert tokens[0].used_at is not None

    async def test_unknown_secret_rejected(self, session, credential_store, client):
        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.verify_reset_token(session, "0" * 64)
        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.verify_reset_token(session, "")

    async def test_expired_secret_rejected(self, session, credential_store, client):
        raw_secret = password_reset_ops.generate_reset_secret()
        await password_reset_ops.create_reset_token(
            session, client.id, raw_secret, ttl=timedelta(minutes=15),
            now=utcnow() - timedelta(minutes=16),
        )
        await session.commit()

        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.verify_reset_token(session, raw_secret)

    async def test_token_expiring_after_verification_cannot_be_consumed(self, session, credential_store, client):
        raw_secret = password_reset_ops.generate_reset_secret()
        reset_token = await password_reset_ops.create_reset_token(
            session, client.id, raw_secret, ttl=timedelta(minutes=15),
        )
        await session.commit()
        authorization = await credential_store.verify_reset_token(session, raw_secret)

        reset_token.expires_at = utcnow() - timedelta(seconds=1)
        await session.commit()

        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.consume_reset_token(session, authorization, "BrandNew123!")

    async def test_session_token_cannot_authorize_reset(self, session, credential_store, client):
        session_token = credential_store.jwt.create_session_token(client.id, "client")
        with pytest.raises(InvalidOrExpiredTokenError):
            await credential_store.consume_reset_token(session, session_token, "BrandNew123!")


class TestPurge:
    """Garbage collection of dead tokens."""

    async def test_purge_removes_used_and_expired(self, session, credential_store, client):
        live = password_reset_ops.generate_reset_secret()
        await password_reset_ops.create_reset_token(session, client.id, live, ttl=timedelta(minutes=15))
        await session.commit()
        expired = PasswordResetToken(
            account_id=client.id,
            token_hash=password_reset_ops.hash_reset_secret("expired"),
            created_at=utcnow() - timedelta(hours=1),
            expires_at=utcnow() - timedelta(minutes=30),
        )
        session.add(expired)
        await session.commit()

        removed = await credential_store.purge_expired_reset_tokens(session)

        assert removed == 1
        assert await credential_store.verify_reset_token(session, live)
