"""
Database Models Package

Organized by purpose:
- base: Shared SQLAlchemy base and timestamp helpers
- account: Identity records (clients and mentors)
- password_reset_token: Hashed single-use recovery secrets
- availability: Mentor weekly slots
- appointment: Bookings and their status state machine
- conversation: Chat threads and messages
"""

from .base import Base

from .account import Account, AccountRole
from .password_reset_token import PasswordResetToken
from .availability import AvailabilitySlot
from .appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    ALLOWED_TRANSITIONS,
    ACTIVE_STATUSES,
)
from .conversation import Conversation, Message


# Helper functions
async def create_tables(engine):
    """
    Create all database tables.

    Args:
        engine: SQLAlchemy async engine
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    # Base
    'Base',

    # Identity
    'Account',
    'AccountRole',
    'PasswordResetToken',

    # Scheduling
    'AvailabilitySlot',
    'Appointment',
    'AppointmentStatus',
    'AppointmentType',
    'ALLOWED_TRANSITIONS',
    'ACTIVE_STATUSES',

    # Chat
    'Conversation',
    'Message',

    # Helper functions
    'create_tables',
]
