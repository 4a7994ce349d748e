"""Account (identity) model."""

import enum
from typing import Optional

from sqlalchemy import Column, String, Integer, Float, DateTime, Enum, Text, JSON
from sqlalchemy.orm import validates

from .base import Base, utcnow


class AccountRole(str, enum.Enum):
    """Account role enum."""
    CLIENT = "client"
    MENTOR = "mentor"


class Account(Base):
    """Registered identity: a client or a mentor."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True, index=True, nullable=False)  # Stored lowercase
    # bcrypt hash only, the plaintext never reaches the database
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(AccountRole, values_callable=lambda x: [e.value for e in x], name="account_role"),
        nullable=False,
    )
    phone = Column(String(32), nullable=True)

    # Mentor attribute group
    specialization = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True)
    bio = Column(Text, nullable=True)
    hourly_rate = Column(Float, nullable=True)
    rating = Column(Float, nullable=True)

    # Client attribute group
    issues = Column(JSON, nullable=True)

    # Bumped on every calendar write; guards check-then-insert across processes
    booking_version = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    MENTOR_FIELDS = ("specialization", "experience_years", "bio", "hourly_rate")
    CLIENT_FIELDS = ("issues",)

    @validates("role")
    def _validate_role(self, key, value):
        role = AccountRole(value)
        if self.role is not None and AccountRole(self.role) != role:
            raise ValueError("Account role is immutable")
        return role

    @property
    def is_mentor(self) -> bool:
        return self.role == AccountRole.MENTOR

    @property
    def is_client(self) -> bool:
        return self.role == AccountRole.CLIENT

    def as_client(self) -> Optional["Account"]:
        """This account if it acts as a client, else ``None``."""
        return self if self.is_client else None

    def as_mentor(self) -> Optional["Account"]:
        """This account if it acts as a mentor, else ``None``."""
        return self if self.is_mentor else None

    def profile_fields(self) -> tuple:
        """Names of the optional attribute group that applies to this role."""
        return self.MENTOR_FIELDS if self.is_mentor else self.CLIENT_FIELDS

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email}, role={self.role})>"
