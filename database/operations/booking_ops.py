"""
Booking Engine Operations

Appointment creation with conflict prevention, and the appointment status
state machine:

    pending -> confirmed -> completed
    pending | confirmed -> cancelled

Creation and rescheduling run through ``write_calendar`` so that the
availability and overlap checks and the insert happen atomically per mentor.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_
from typing import Optional, List, Union
from datetime import date, datetime
import logging

from database.models.base import utcnow
from database.models.account import Account
from database.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    ACTIVE_STATUSES,
)
from database.operations.availability_ops import write_calendar, find_covering_slot
from utils.async_tools import KeyedLockManager
from utils.errors import (
    DomainError,
    ForbiddenError,
    NotFoundError,
    InvalidParticipantsError,
    InvalidTimeFormatError,
    InvalidTransitionError,
    OverlapConflictError,
    SlotUnavailableError,
    translate_errors,
)
from utils.scheduling import TimeWindow, Weekday

logger = logging.getLogger(__name__)

RESCHEDULABLE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


def parse_date(value: Union[date, str]) -> date:
    """
    Accept a ``date`` or an ISO ``YYYY-MM-DD`` string.

    Raises:
        InvalidTimeFormatError: on anything else
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidTimeFormatError(f"Invalid date: {value!r}") from None


def _parse_status(value: Union[AppointmentStatus, str]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise InvalidTransitionError(f"Unknown appointment status: {value!r}") from None


async def find_overlapping_appointment(
    session: AsyncSession,
    mentor_id: int,
    appointment_date: date,
    window: TimeWindow,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    """
    First non-cancelled appointment of the mentor on that date that overlaps
    ``window``. Times are zero-padded so string comparison is time order.
    """
    conditions = [
        Appointment.mentor_id == mentor_id,
        Appointment.date == appointment_date,
        Appointment.status.in_(ACTIVE_STATUSES),
        Appointment.start_time < window.end_str,
        Appointment.end_time > window.start_str,
    ]
    if exclude_id is not None:
        conditions.append(Appointment.id != exclude_id)

    result = await session.execute(select(Appointment).where(and_(*conditions)))
    return result.scalars().first()


async def _ensure_bookable(
    session: AsyncSession,
    mentor_id: int,
    appointment_date: date,
    window: TimeWindow,
    exclude_id: Optional[int] = None,
):
    day = Weekday(appointment_date.weekday())
    if await find_covering_slot(session, mentor_id, day, window) is None:
        raise SlotUnavailableError(
            f"Mentor is not available on {day.label} {window}"
        )

    clash = await find_overlapping_appointment(
        session, mentor_id, appointment_date, window, exclude_id=exclude_id
    )
    if clash is not None:
        raise OverlapConflictError(
            f"Time {window} overlaps an existing booking "
            f"{clash.start_time}-{clash.end_time} on {appointment_date.isoformat()}"
        )


async def _load_for_participant(
    session: AsyncSession,
    appointment_id: int,
    requester: Account,
) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    if not appointment.involves(requester.id):
        raise ForbiddenError("Not a participant of this appointment")
    return appointment


# ============================================================================
# Creation
# ============================================================================

@translate_errors("create_appointment")
async def create_appointment(
    session: AsyncSession,
    client: Account,
    mentor_id: int,
    appointment_date: Union[date, str],
    start_time: str,
    end_time: str,
    notes: Optional[str] = None,
    appointment_type: Union[AppointmentType, str] = AppointmentType.CHAT,
    amount: float = 0,
    locks: Optional[KeyedLockManager] = None,
) -> Appointment:
    """
    Book a mentor.

    Args:
        session: Database session
        client: Booking client
        mentor_id: Mentor to book
        appointment_date: Calendar date (``date`` or ``YYYY-MM-DD``)
        start_time: ``HH:MM``
        end_time: ``HH:MM``
        notes: Free text from the client
        appointment_type: ``chat`` or ``video``
        amount: Price, informational only
        locks: Lock registry override (tests)

    Returns:
        The new appointment, status ``pending``

    Raises:
        NotFoundError: mentor missing or not a mentor
        ForbiddenError: requester is not a client
        InvalidParticipantsError: client and mentor are the same account
        InvalidTimeFormatError: malformed date/times or start >= end
        SlotUnavailableError: not inside one of the mentor's slots
        OverlapConflictError: overlaps another non-cancelled booking
    """
    mentor = await session.get(Account, mentor_id)
    if mentor is None or mentor.as_mentor() is None:
        raise NotFoundError("Mentor not found")
    if client.as_client() is None:
        raise ForbiddenError("Only clients can book appointments")
    client_id = client.id
    if client_id == mentor_id:
        raise InvalidParticipantsError("Client and mentor must be different accounts")

    window = TimeWindow.from_strings(start_time, end_time)
    booking_date = parse_date(appointment_date)
    try:
        kind = AppointmentType(appointment_type)
    except ValueError:
        raise DomainError(f"Unknown appointment type: {appointment_type!r}") from None

    async def stage() -> Appointment:
        await _ensure_bookable(session, mentor_id, booking_date, window)
        appointment = Appointment(
            client_id=client_id,
            mentor_id=mentor_id,
            date=booking_date,
            start_time=window.start_str,
            end_time=window.end_str,
            status=AppointmentStatus.PENDING,
            appointment_type=kind,
            is_paid=False,
            amount=amount or 0,
            notes=notes,
        )
        session.add(appointment)
        return appointment

    appointment = await write_calendar(session, mentor_id, stage, "create_appointment", locks=locks)
    logger.info(
        f"✅ Appointment {appointment.id} booked: client {client_id} with mentor {mentor_id} "
        f"on {booking_date.isoformat()} {window}"
    )
    return appointment


# ============================================================================
# Queries
# ============================================================================

@translate_errors("list_appointments")
async def list_appointments(session: AsyncSession, account: Account) -> List[Appointment]:
    """All appointments where the account is client or mentor, by date then start."""
    result = await session.execute(
        select(Appointment)
        .where(or_(Appointment.client_id == account.id, Appointment.mentor_id == account.id))
        .order_by(Appointment.date, Appointment.start_time, Appointment.id)
    )
    return list(result.scalars().all())


@translate_errors("get_appointment")
async def get_appointment(session: AsyncSession, appointment_id: int, requester: Account) -> Appointment:
    """
    Fetch one appointment for a participant.

    Raises:
        NotFoundError: no such appointment
        ForbiddenError: requester is not a participant
    """
    return await _load_for_participant(session, appointment_id, requester)


# ============================================================================
# Status changes
# ============================================================================

@translate_errors("update_status")
async def update_status(
    session: AsyncSession,
    appointment_id: int,
    requester: Account,
    new_status: Union[AppointmentStatus, str],
) -> Appointment:
    """
    Move an appointment along the state machine.

    Either participant may make any allowed move. The write is conditional
    on the status it was checked against, so two racing updates cannot
    both apply.

    Raises:
        NotFoundError: no such appointment
        ForbiddenError: requester is not a participant
        InvalidTransitionError: unknown status or move not allowed
    """
    appointment = await _load_for_participant(session, appointment_id, requester)
    target = _parse_status(new_status)
    current = AppointmentStatus(appointment.status)

    if not appointment.can_transition_to(target):
        raise InvalidTransitionError(
            f"Cannot change appointment from {current.value} to {target.value}"
        )

    result = await session.execute(
        update(Appointment)
        .where(and_(Appointment.id == appointment_id, Appointment.status == current))
        .values(status=target, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise InvalidTransitionError("Appointment status changed concurrently")

    await session.commit()
    await session.refresh(appointment)
    logger.info(f"✅ Appointment {appointment_id}: {current.value} -> {target.value}")
    return appointment


async def cancel_appointment(session: AsyncSession, appointment_id: int, requester: Account) -> Appointment:
    """Cancel a pending or confirmed appointment."""
    return await update_status(session, appointment_id, requester, AppointmentStatus.CANCELLED)


@translate_errors("reschedule_appointment")
async def reschedule_appointment(
    session: AsyncSession,
    appointment_id: int,
    requester: Account,
    appointment_date: Union[date, str],
    start_time: str,
    end_time: str,
    locks: Optional[KeyedLockManager] = None,
) -> Appointment:
    """
    Move a pending or confirmed appointment to a new date/time.

    The new time must pass the same availability and overlap checks as a
    new booking; the appointment's own current time does not count as a
    conflict.

    Raises:
        NotFoundError, ForbiddenError: as for get_appointment
        InvalidTransitionError: appointment is completed or cancelled
        InvalidTimeFormatError, SlotUnavailableError, OverlapConflictError:
            as for create_appointment
    """
    appointment = await _load_for_participant(session, appointment_id, requester)
    if AppointmentStatus(appointment.status) not in RESCHEDULABLE_STATUSES:
        raise InvalidTransitionError(
            f"Cannot reschedule a {AppointmentStatus(appointment.status).value} appointment"
        )
    mentor_id = appointment.mentor_id

    window = TimeWindow.from_strings(start_time, end_time)
    new_date = parse_date(appointment_date)

    async def stage() -> Appointment:
        current = await session.get(Appointment, appointment_id)
        if current is None:
            raise NotFoundError("Appointment not found")
        if AppointmentStatus(current.status) not in RESCHEDULABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot reschedule a {AppointmentStatus(current.status).value} appointment"
            )
        await _ensure_bookable(session, mentor_id, new_date, window, exclude_id=appointment_id)
        current.date = new_date
        current.start_time = window.start_str
        current.end_time = window.end_str
        return current

    appointment = await write_calendar(session, mentor_id, stage, "reschedule_appointment", locks=locks)
    logger.info(f"✅ Appointment {appointment_id} rescheduled to {new_date.isoformat()} {window}")
    return appointment


@translate_errors("delete_appointment")
async def delete_appointment(session: AsyncSession, appointment_id: int, requester: Account) -> None:
    """
    Hard-delete an appointment that is still pending.

    Anything past pending keeps its history and must be cancelled instead.

    Raises:
        NotFoundError, ForbiddenError: as for get_appointment
        InvalidTransitionError: appointment is no longer pending
    """
    appointment = await _load_for_participant(session, appointment_id, requester)
    if AppointmentStatus(appointment.status) != AppointmentStatus.PENDING:
        raise InvalidTransitionError("Only pending appointments can be deleted; cancel it instead")

    result = await session.execute(
        delete(Appointment)
        .where(and_(Appointment.id == appointment_id, Appointment.status == AppointmentStatus.PENDING))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise InvalidTransitionError("Appointment status changed concurrently")

    await session.commit()
    session.expunge(appointment)
    logger.info(f"✅ Appointment {appointment_id} deleted")


__all__ = [
    'parse_date',
    'find_overlapping_appointment',
    'create_appointment',
    'list_appointments',
    'get_appointment',
    'update_status',
    'cancel_appointment',
    'reschedule_appointment',
    'delete_appointment',
]
