"""
Database Operations Package

High-level database operations organized by purpose:
- account_ops: Account lookups and creation
- password_reset_ops: Reset token storage and consumption
- availability_ops: Mentor availability slots and the calendar write protocol
- booking_ops: Appointments and their status state machine
- conversation_ops: Client/mentor conversations and messages
"""

from . import account_ops, password_reset_ops

# Availability ledger
from .availability_ops import (
    add_slot,
    list_slots,
    remove_slot,
    write_calendar,
)

# Booking engine
from .booking_ops import (
    create_appointment,
    list_appointments,
    get_appointment,
    update_status,
    cancel_appointment,
    reschedule_appointment,
    delete_appointment,
)

# Conversation log
from .conversation_ops import (
    start_or_get_conversation,
    append_message,
    list_messages,
    list_conversations,
    deactivate_conversation,
)

__all__ = [
    'account_ops',
    'password_reset_ops',
    # Availability
    'add_slot',
    'list_slots',
    'remove_slot',
    'write_calendar',
    # Booking
    'create_appointment',
    'list_appointments',
    'get_appointment',
    'update_status',
    'cancel_appointment',
    'reschedule_appointment',
    'delete_appointment',
    # Conversations
    'start_or_get_conversation',
    'append_message',
    'list_messages',
    'list_conversations',
    'deactivate_conversation',
]
