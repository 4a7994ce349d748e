"""
Conversation Log Operations

One active conversation per client/mentor pair and an append-only message
list inside it. Conversations are never deleted, only deactivated.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
import logging

from database.models.base import utcnow
from database.models.account import Account
from database.models.appointment import Appointment
from database.models.conversation import Conversation, Message
from utils.errors import (
    EmptyMessageError,
    ForbiddenError,
    InvalidParticipantsError,
    NotFoundError,
    translate_errors,
)

logger = logging.getLogger(__name__)


async def _get_active_conversation(
    session: AsyncSession,
    client_id: int,
    mentor_id: int,
) -> Optional[Conversation]:
    result = await session.execute(
        select(Conversation).where(
            and_(
                Conversation.client_id == client_id,
                Conversation.mentor_id == mentor_id,
                Conversation.is_active.is_(True),
            )
        )
    )
    return result.scalars().first()


async def _load_for_participant(
    session: AsyncSession,
    conversation_id: int,
    account_id: int,
) -> Conversation:
    conversation = await session.get(Conversation, conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    if not conversation.involves(account_id):
        raise ForbiddenError("Not a participant of this conversation")
    return conversation


async def _resolve_counterpart(
    session: AsyncSession,
    requester: Account,
    counterpart_id: Optional[int],
    appointment: Optional[Appointment],
) -> Optional[int]:
    """
    Id of the other side of the conversation, checked for the opposite role.

    With an appointment, the counterpart must be its other participant.
    """
    if appointment is not None:
        other_side = appointment.mentor_id if requester.is_client else appointment.client_id
        if counterpart_id is not None and counterpart_id != other_side:
            return None
        counterpart_id = other_side
    if counterpart_id is None or counterpart_id == requester.id:
        return None

    counterpart = await session.get(Account, counterpart_id)
    if counterpart is None:
        return None
    wanted = counterpart.as_mentor() if requester.is_client else counterpart.as_client()
    return wanted.id if wanted is not None else None


@translate_errors("start_or_get_conversation")
async def start_or_get_conversation(
    session: AsyncSession,
    requester: Account,
    counterpart_id: Optional[int] = None,
    appointment_id: Optional[int] = None,
) -> Conversation:
    """
    Return the active conversation between the requester and a counterpart,
    creating it if needed.

    The counterpart is ``counterpart_id`` when given, otherwise the other
    participant of ``appointment_id``.

    Args:
        session: Database session
        requester: Client or mentor opening the chat
        counterpart_id: Account on the other side
        appointment_id: Optional appointment to link the conversation to

    Returns:
        Existing or new active Conversation

    Raises:
        NotFoundError: ``appointment_id`` does not exist
        ForbiddenError: requester is not a participant of that appointment
        InvalidParticipantsError: no counterpart of the opposite role, or a
            counterpart that is not the other side of the appointment
    """
    requester_id = requester.id

    appointment = None
    if appointment_id is not None:
        appointment = await session.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        if not appointment.involves(requester_id):
            raise ForbiddenError("Not a participant of this appointment")

    other_id = await _resolve_counterpart(session, requester, counterpart_id, appointment)
    if other_id is None:
        raise InvalidParticipantsError()

    if requester.is_client:
        client_id, mentor_id = requester_id, other_id
    else:
        client_id, mentor_id = other_id, requester_id

    existing = await _get_active_conversation(session, client_id, mentor_id)
    if existing is not None:
        return existing

    conversation = Conversation(
        client_id=client_id,
        mentor_id=mentor_id,
        appointment_id=appointment_id,
        is_active=True,
    )
    session.add(conversation)
    try:
        await session.commit()
    except IntegrityError:
        # Another request opened the same pair first
        await session.rollback()
        existing = await _get_active_conversation(session, client_id, mentor_id)
        if existing is None:
            raise
        logger.info(f"Conversation for client {client_id} / mentor {mentor_id} created concurrently, reusing it")
        return existing

    logger.info(f"✅ Conversation {conversation.id} started: client {client_id} / mentor {mentor_id}")
    return conversation


@translate_errors("append_message")
async def append_message(
    session: AsyncSession,
    conversation_id: int,
    sender: Account,
    text: str,
) -> Message:
    """
    Append a message to a conversation.

    Raises:
        NotFoundError: no such conversation
        ForbiddenError: sender is not a participant, or the conversation is closed
        EmptyMessageError: text is blank
    """
    conversation = await _load_for_participant(session, conversation_id, sender.id)
    if not conversation.is_active:
        raise ForbiddenError("Conversation is closed")

    content = (text or "").strip()
    if not content:
        raise EmptyMessageError()

    now = utcnow()
    message = Message(
        conversation_id=conversation.id,
        sender_id=sender.id,
        content=content,
        created_at=now,
    )
    session.add(message)
    conversation.updated_at = now
    await session.commit()
    return message


@translate_errors("list_messages")
async def list_messages(
    session: AsyncSession,
    conversation_id: int,
    requester: Account,
) -> List[Message]:
    """Messages of a conversation in append order."""
    await _load_for_participant(session, conversation_id, requester.id)
    result = await session.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.id)
    )
    return list(result.scalars().all())


@translate_errors("list_conversations")
async def list_conversations(session: AsyncSession, account: Account) -> List[Conversation]:
    """Active conversations of an account, most recently updated first."""
    result = await session.execute(
        select(Conversation)
        .where(
            and_(
                or_(Conversation.client_id == account.id, Conversation.mentor_id == account.id),
                Conversation.is_active.is_(True),
            )
        )
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
    )
    return list(result.scalars().all())


@translate_errors("deactivate_conversation")
async def deactivate_conversation(
    session: AsyncSession,
    conversation_id: int,
    requester: Account,
) -> Conversation:
    """
    Close a conversation. Its messages stay readable; a new conversation
    can then be started for the same pair.
    """
    conversation = await _load_for_participant(session, conversation_id, requester.id)
    if conversation.is_active:
        conversation.is_active = False
        conversation.updated_at = utcnow()
        await session.commit()
        logger.info(f"Conversation {conversation_id} deactivated by account {requester.id}")
    return conversation


__all__ = [
    'start_or_get_conversation',
    'append_message',
    'list_messages',
    'list_conversations',
    'deactivate_conversation',
]
