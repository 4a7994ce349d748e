"""
JWT Handler Tests

Session tokens and reset authorizations are separate credential kinds:
each verifier must reject the other's tokens, tampered tokens and expired
tokens.
"""

import base64
import os
import json
from datetime import timedelta

import pytest
from jose import jwt

from utils.auth.jwt_handler import JWTHandler, SESSION_PURPOSE, RESET_PURPOSE
from utils.errors import InvalidCredentialsError, InvalidOrExpiredTokenError

TEST_SECRET_KEY = os.environ["SECRET_KEY"]
TEST_RESET_SECRET_KEY = os.environ["RESET_SECRET_KEY"]


def _claims(token: str) -> dict:
    payload_b64 = token.split(".")[1]
    padding = "=" * (-len(payload_b64) % 4)
    return json.loads(base64.urlsafe_b64decode(payload_b64 + padding))


def _tamper(token: str, **changes) -> str:
    header, payload_b64, signature = token.split(".")
    payload = _claims(token)
    payload.update(changes)
    new_payload = base64.urlsafe_b64encode(
        json.dumps(payload, separators=(",", ":")).encode()
    ).decode().rstrip("=")
    return f"{header}.{new_payload}.{signature}"


class TestConstruction:
    """Secrets are validated when the handler is built."""

    def test_short_secret_rejected(self):
        with pytest.raises(ValueError):
            JWTHandler(secret_key="short", reset_secret_key=TEST_RESET_SECRET_KEY)

    def test_shared_secret_rejected(self):
        with pytest.raises(ValueError):
            JWTHandler(secret_key=TEST_SECRET_KEY, reset_secret_key=TEST_SECRET_KEY)

    def test_unsupported_algorithm_rejected(self):
        with pytest.raises(ValueError):
            JWTHandler(TEST_SECRET_KEY, TEST_RESET_SECRET_KEY, algorithm="none")


class TestSessionTokens:
    """Session token issue and verification."""

    def test_round_trip(self, jwt_handler):
        token = jwt_handler.create_session_token(42, "client")
        payload = jwt_handler.verify_session_token(token)
        assert payload["account_id"] == 42
        assert payload["role"] == "client"
        assert payload["purpose"] == SESSION_PURPOSE

    def test_remember_me_lives_longer(self, jwt_handler):
        short = _claims(jwt_handler.create_session_token(1, "client"))
        long = _claims(jwt_handler.create_session_token(1, "client", remember_me=True))
        assert long["exp"] - short["exp"] >= timedelta(days=28).total_seconds()

    def test_expired_token_rejected(self, jwt_handler):
        token = jwt_handler.create_session_token(1, "client", expires_delta=timedelta(seconds=-5))
        with pytest.raises(InvalidCredentialsError) as exc_info:
            jwt_handler.verify_session_token(token)
        assert exc_info.value.message == "Session expired"

    def test_tampered_subject_rejected(self, jwt_handler):
        token = jwt_handler.create_session_token(1, "client")
        with pytest.raises(InvalidCredentialsError):
            jwt_handler.verify_session_token(_tamper(token, sub="2"))

    def test_foreign_signature_rejected(self, jwt_handler):
        forged = jwt.encode(
            {"sub": "1", "role": "mentor", "purpose": SESSION_PURPOSE, "exp": 9999999999},
            "some-other-secret-key-that-is-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(InvalidCredentialsError):
            jwt_handler.verify_session_token(forged)

    def test_garbage_rejected(self, jwt_handler):
        with pytest.raises(InvalidCredentialsError):
            jwt_handler.verify_session_token("not.a.token")


class TestResetAuthorizations:
    """Reset authorizations never pass as sessions and vice versa."""

    def test_round_trip(self, jwt_handler):
        token = jwt_handler.create_reset_authorization(7)
        assert jwt_handler.verify_reset_authorization(token) == 7
        assert _claims(token)["purpose"] == RESET_PURPOSE

    def test_reset_authorization_is_not_a_session(self, jwt_handler):
        token = jwt_handler.create_reset_authorization(7)
        with pytest.raises(InvalidCredentialsError):
            jwt_handler.verify_session_token(token)

    def test_session_is_not_a_reset_authorization(self, jwt_handler):
        token = jwt_handler.create_session_token(7, "client")
        with pytest.raises(InvalidOrExpiredTokenError):
            jwt_handler.verify_reset_authorization(token)

    def test_reset_purpose_signed_with_session_key_rejected(self, jwt_handler):
        forged = jwt.encode(
            {"rid": 7, "purpose": RESET_PURPOSE, "exp": 9999999999},
            TEST_SECRET_KEY,
            algorithm="HS256",
        )
        with pytest.raises(InvalidOrExpiredTokenError):
            jwt_handler.verify_reset_authorization(forged)

    def test_expired_reset_authorization_rejected(self, jwt_handler):
        token = jwt_handler.create_reset_authorization(7, expires_delta=timedelta(seconds=-5))
        with pytest.raises(InvalidOrExpiredTokenError):
            jwt_handler.verify_reset_authorization(token)
