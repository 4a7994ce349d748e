"""
Database Package

Organized by purpose:
- core: Async engine and session management
- models: SQLAlchemy models (accounts, reset tokens, availability, appointments, chat)
- operations: Availability ledger, booking engine, conversation log and account queries
"""

from .models import (
    Base,
    Account,
    AccountRole,
    PasswordResetToken,
    AvailabilitySlot,
    Appointment,
    AppointmentStatus,
    AppointmentType,
    Conversation,
    Message,
    create_tables,
)

__all__ = [
    'Base',
    'Account',
    'AccountRole',
    'PasswordResetToken',
    'AvailabilitySlot',
    'Appointment',
    'AppointmentStatus',
    'AppointmentType',
    'Conversation',
    'Message',
    'create_tables',
]
