"""
Test Configuration and Utilities

- Environment for the settings object (must be set before app imports)
- Fresh in-memory SQLite schema per test
- Credential store with a mocked email service
- Account, slot and date fixtures
"""

import os

os.environ["SECRET_KEY"] = "test-session-secret-key-0123456789abcdef"
os.environ["RESET_SECRET_KEY"] = "test-reset-secret-key-fedcba9876543210zyx"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "10"

import pytest
from datetime import date, timedelta
from unittest.mock import Mock

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import create_tables
from database.models.account import Account, AccountRole
from database.operations import availability_ops
from utils.auth import CredentialStore, JWTHandler
from utils.auth.password import hash_password_sync
from utils.email import EmailService


TEST_SECRET_KEY = os.environ["SECRET_KEY"]
TEST_RESET_SECRET_KEY = os.environ["RESET_SECRET_KEY"]

# Lowest cost bcrypt accepts; production minimum is enforced by settings
TEST_BCRYPT_ROUNDS = 4

DEFAULT_PASSWORD = "Password123!"


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def db_engine():
    """In-memory database with all tables, discarded after the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# ============================================================================
# Credential store
# ============================================================================

@pytest.fixture
def jwt_handler():
    return JWTHandler(
        secret_key=TEST_SECRET_KEY,
        reset_secret_key=TEST_RESET_SECRET_KEY,
        leeway_seconds=0,
    )


@pytest.fixture
def email_service():
    """Email collaborator that records calls and reports success."""
    service = Mock(spec=EmailService)
    service.send_password_reset_email.return_value = True
    return service


@pytest.fixture
def credential_store(jwt_handler, email_service):
    return CredentialStore(
        jwt_handler=jwt_handler,
        email_service=email_service,
        reset_token_ttl=timedelta(minutes=15),
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )


# ============================================================================
# Accounts
# ============================================================================

async def make_account(
    session: AsyncSession,
    name: str,
    email: str,
    role: AccountRole,
    password: str = DEFAULT_PASSWORD,
    **profile,
) -> Account:
    """Insert an account directly, bypassing the credential store."""
    account = Account(
        name=name,
        email=email.lower(),
        password_hash=hash_password_sync(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        **profile,
    )
    session.add(account)
    await session.commit()
    return account


@pytest.fixture
async def mentor(session):
    return await make_account(
        session, "Maya Mentor", "mentor@example.com", AccountRole.MENTOR,
        specialization="Career coaching",
    )


@pytest.fixture
async def other_mentor(session):
    return await make_account(session, "Omar Mentor", "mentor2@example.com", AccountRole.MENTOR)


@pytest.fixture
async def client(session):
    return await make_account(
        session, "Chris Client", "client@example.com", AccountRole.CLIENT,
        issues=["stress"],
    )


@pytest.fixture
async def other_client(session):
    return await make_account(session, "Dana Client", "client2@example.com", AccountRole.CLIENT)


# ============================================================================
# Calendar
# ============================================================================

@pytest.fixture
def next_monday() -> date:
    """A Monday strictly in the future."""
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) or 7)


@pytest.fixture
async def monday_slot(session, mentor):
    """Mentor is available Mondays 09:00-12:00."""
    return await availability_ops.add_slot(session, mentor, "monday", "09:00", "12:00")
