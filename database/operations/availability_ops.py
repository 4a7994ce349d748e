"""
Availability Ledger Operations

Weekly recurring availability slots per mentor, plus the calendar write
protocol shared with the booking engine.

Every write to a mentor's calendar (slots or appointments) runs through
``write_calendar``: it holds the mentor's in-process lock, reads the
mentor's ``booking_version``, stages the change and commits only if a
compare-and-set bump of that version succeeds. A failed bump means another
process wrote to the same calendar; the transaction is rolled back and the
checks run again on fresh state.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from typing import Optional, List, Union, Callable, Awaitable, TypeVar
import logging

from config import settings
from database.models.account import Account, AccountRole
from database.models.availability import AvailabilitySlot
from utils.async_tools import KeyedLockManager, get_booking_locks
from utils.errors import (
    ForbiddenError,
    NotFoundError,
    OverlapConflictError,
    translate_errors,
)
from utils.scheduling import TimeWindow, Weekday

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Calendar write protocol
# ============================================================================

async def read_calendar_version(session: AsyncSession, mentor_id: int) -> Optional[int]:
    """Current ``booking_version`` of a mentor, or None if no such mentor."""
    result = await session.execute(
        select(Account.booking_version).where(
            and_(Account.id == mentor_id, Account.role == AccountRole.MENTOR)
        )
    )
    return result.scalar_one_or_none()


async def claim_calendar(session: AsyncSession, mentor_id: int, expected_version: int) -> bool:
    """
    Bump the mentor's calendar version if it still equals ``expected_version``.

    Returns:
        True if this transaction won the bump
    """
    result = await session.execute(
        update(Account)
        .where(and_(Account.id == mentor_id, Account.booking_version == expected_version))
        .values(booking_version=expected_version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def write_calendar(
    session: AsyncSession,
    mentor_id: int,
    stage: Callable[[], Awaitable[T]],
    operation: str,
    locks: Optional[KeyedLockManager] = None,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run ``stage`` as an atomic check-and-write on one mentor's calendar.

    ``stage`` performs its checks, adds its changes to the session and
    returns the result. It must not commit. Domain errors raised by
    ``stage`` propagate without a retry.

    Args:
        session: Database session
        mentor_id: Calendar owner
        stage: Coroutine function doing the checks and staging the write
        operation: Name used in log lines
        locks: Lock registry (defaults to the process-wide one)
        max_attempts: CAS attempts before giving up

    Returns:
        Whatever ``stage`` returned, after commit

    Raises:
        NotFoundError: if ``mentor_id`` is not a mentor
        OverlapConflictError: after ``max_attempts`` lost races
    """
    locks = locks or get_booking_locks()
    attempts = max(1, max_attempts or settings.booking_max_attempts)

    async with locks.hold(("mentor", mentor_id)):
        for attempt in range(1, attempts + 1):
            version = await read_calendar_version(session, mentor_id)
            if version is None:
                raise NotFoundError("Mentor not found")

            result = await stage()
            await session.flush()

            if await claim_calendar(session, mentor_id, version):
                await session.commit()
                return result

            await session.rollback()
            logger.warning(
                f"⚠️  {operation}: calendar of mentor {mentor_id} changed concurrently "
                f"(attempt {attempt}/{attempts})"
            )

    raise OverlapConflictError("The calendar changed while booking, please try again")


# ============================================================================
# Slots
# ============================================================================

def _require_mentor(account: Account) -> int:
    if account.as_mentor() is None:
        raise ForbiddenError("Only mentors can manage availability")
    return account.id


@translate_errors("add_slot")
async def add_slot(
    session: AsyncSession,
    mentor: Account,
    day_of_week: Union[int, str],
    start_time: str,
    end_time: str,
    locks: Optional[KeyedLockManager] = None,
) -> AvailabilitySlot:
    """
    Add a weekly availability slot for a mentor.

    Args:
        session: Database session
        mentor: Mentor account
        day_of_week: 0-6 (Monday=0) or a weekday name
        start_time: ``HH:MM``
        end_time: ``HH:MM``, after start_time

    Returns:
        The created AvailabilitySlot

    Raises:
        ForbiddenError: if the account is not a mentor
        InvalidTimeFormatError: bad day, bad time or start >= end
        OverlapConflictError: overlaps another slot on the same day
    """
    mentor_id = _require_mentor(mentor)
    day = Weekday.parse(day_of_week)
    window = TimeWindow.from_strings(start_time, end_time)

    async def stage() -> AvailabilitySlot:
        existing = await session.execute(
            select(AvailabilitySlot).where(
                and_(
                    AvailabilitySlot.mentor_id == mentor_id,
                    AvailabilitySlot.day_of_week == int(day),
                    AvailabilitySlot.start_time < window.end_str,
                    AvailabilitySlot.end_time > window.start_str,
                )
            )
        )
        clash = existing.scalars().first()
        if clash is not None:
            raise OverlapConflictError(
                f"Slot overlaps existing availability {clash.start_time}-{clash.end_time} on {day.label}"
            )

        slot = AvailabilitySlot(
            mentor_id=mentor_id,
            day_of_week=int(day),
            start_time=window.start_str,
            end_time=window.end_str,
        )
        session.add(slot)
        return slot

    slot = await write_calendar(session, mentor_id, stage, "add_slot", locks=locks)
    logger.info(f"✅ Mentor {mentor_id} added slot {day.label} {window}")
    return slot


@translate_errors("list_slots")
async def list_slots(session: AsyncSession, mentor_id: int) -> List[AvailabilitySlot]:
    """
    List a mentor's slots ordered by day then start time.

    Unknown mentors simply have no slots.
    """
    result = await session.execute(
        select(AvailabilitySlot)
        .where(AvailabilitySlot.mentor_id == mentor_id)
        .order_by(AvailabilitySlot.day_of_week, AvailabilitySlot.start_time)
    )
    return list(result.scalars().all())


@translate_errors("remove_slot")
async def remove_slot(
    session: AsyncSession,
    mentor: Account,
    slot_id: int,
    locks: Optional[KeyedLockManager] = None,
) -> None:
    """
    Delete one of the mentor's slots.

    Existing appointments inside the slot are left alone.

    Raises:
        ForbiddenError: if the account is not a mentor
        NotFoundError: if the slot does not exist or belongs to another mentor
    """
    mentor_id = _require_mentor(mentor)

    async def stage() -> None:
        slot = await session.get(AvailabilitySlot, slot_id)
        if slot is None or slot.mentor_id != mentor_id:
            raise NotFoundError("Availability slot not found")
        await session.delete(slot)

    await write_calendar(session, mentor_id, stage, "remove_slot", locks=locks)
    logger.info(f"✅ Mentor {mentor_id} removed slot {slot_id}")


async def find_covering_slot(
    session: AsyncSession,
    mentor_id: int,
    day: Weekday,
    window: TimeWindow,
) -> Optional[AvailabilitySlot]:
    """First slot of the mentor on ``day`` that fully contains ``window``."""
    result = await session.execute(
        select(AvailabilitySlot)
        .where(
            and_(
                AvailabilitySlot.mentor_id == mentor_id,
                AvailabilitySlot.day_of_week == int(day),
                AvailabilitySlot.start_time <= window.start_str,
                AvailabilitySlot.end_time >= window.end_str,
            )
        )
        .order_by(AvailabilitySlot.start_time)
    )
    return result.scalars().first()


__all__ = [
    'read_calendar_version',
    'claim_calendar',
    'write_calendar',
    'add_slot',
    'list_slots',
    'remove_slot',
    'find_covering_slot',
]
