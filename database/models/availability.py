"""Mentor availability models."""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, CheckConstraint

from .base import Base, utcnow


class AvailabilitySlot(Base):
    """A mentor's recurring weekly open window."""

    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday, like date.weekday()
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_slot_mentor_day', 'mentor_id', 'day_of_week'),
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_slot_day_of_week'),
        CheckConstraint('start_time < end_time', name='ck_slot_start_before_end'),
    )

    def __repr__(self):
        return (
            f"<AvailabilitySlot(mentor_id={self.mentor_id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time})>"
        )
