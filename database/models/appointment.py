"""Appointment model and its status state machine."""

import enum

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, Date, DateTime, Enum, Text,
    ForeignKey, Index, CheckConstraint,
)

from .base import Base, utcnow


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentType(str, enum.Enum):
    """Session modality."""
    CHAT = "chat"
    VIDEO = "video"


# pending -> confirmed -> completed, with cancellation from either open state.
ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# States that still occupy the mentor's calendar
ACTIVE_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
)


class Appointment(Base):
    """A scheduled session between one client and one mentor."""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    status = Column(
        Enum(AppointmentStatus, values_callable=lambda x: [e.value for e in x], name="appointment_status"),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    appointment_type = Column(
        Enum(AppointmentType, values_callable=lambda x: [e.value for e in x], name="appointment_type"),
        nullable=False,
        default=AppointmentType.CHAT,
    )
    is_paid = Column(Boolean, nullable=False, default=False)
    amount = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_appointment_mentor_date', 'mentor_id', 'date'),
        CheckConstraint('client_id <> mentor_id', name='ck_appointment_distinct_parties'),
        CheckConstraint('start_time < end_time', name='ck_appointment_start_before_end'),
    )

    def involves(self, account_id: int) -> bool:
        return account_id in (self.client_id, self.mentor_id)

    def can_transition_to(self, status: AppointmentStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[AppointmentStatus(self.status)]

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, mentor_id={self.mentor_id}, date={self.date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
