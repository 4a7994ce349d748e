"""
Password Reset Token Model

Stores hashed password reset secrets for the email-based recovery flow.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, Index
from database.models.base import Base, utcnow


class PasswordResetToken(Base):
    """Password reset token model. Only the SHA-256 of the secret is kept."""

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Indexes for performance
    __table_args__ = (
        Index('idx_reset_token_expiry', 'expires_at'),
    )

    def __repr__(self):
        return f"<PasswordResetToken(account_id={self.account_id}, is_used={self.is_used})>"
