"""Chat models: one conversation per client/mentor pair, append-only messages."""

from sqlalchemy import Column, Integer, Boolean, DateTime, Text, ForeignKey, Index, text

from .base import Base, utcnow


class Conversation(Base):
    """Message thread between exactly one client and one mentor."""

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        # At most one active thread per pair
        Index(
            'uq_conversation_active_pair',
            'client_id',
            'mentor_id',
            unique=True,
            postgresql_where=text('is_active'),
            sqlite_where=text('is_active = 1'),
        ),
    )

    def involves(self, account_id: int) -> bool:
        return account_id in (self.client_id, self.mentor_id)

    def __repr__(self):
        return f"<Conversation(id={self.id}, client_id={self.client_id}, mentor_id={self.mentor_id})>"


class Message(Base):
    """Single chat entry. Append order is ascending id."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_message_conversation', 'conversation_id', 'id'),
    )

    def __repr__(self):
        return f"<Message(id={self.id}, conversation_id={self.conversation_id}, sender_id={self.sender_id})>"
