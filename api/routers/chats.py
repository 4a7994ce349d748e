"""Chats Router - client/mentor conversations and their messages."""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_account
from api.models import (
    ConversationRequest,
    ConversationResponse,
    ChatMessageRequest,
    ChatMessageResponse,
)
from database.core.async_connection import get_session
from database.models.account import Account
from database.operations import conversation_ops

router = APIRouter(prefix="/api/chats", tags=["Chats"])


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Active conversations, most recently updated first."""
    return await conversation_ops.list_conversations(session, account)


@router.post("", response_model=ConversationResponse)
async def start_conversation(
    request: ConversationRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Open the conversation with a counterpart, or return the one already open."""
    return await conversation_ops.start_or_get_conversation(
        session,
        account,
        counterpart_id=request.counterpart_id,
        appointment_id=request.appointment_id,
    )


@router.get("/{conversation_id}/messages", response_model=List[ChatMessageResponse])
async def list_messages(
    conversation_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await conversation_ops.list_messages(session, conversation_id, account)


@router.post("/{conversation_id}/messages", response_model=ChatMessageResponse, status_code=201)
async def send_message(
    conversation_id: int,
    request: ChatMessageRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Append a message. Blank messages are rejected."""
    return await conversation_ops.append_message(session, conversation_id, account, request.content)


@router.delete("/{conversation_id}", response_model=ConversationResponse)
async def close_conversation(
    conversation_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Deactivate a conversation. Messages are kept."""
    return await conversation_ops.deactivate_conversation(session, conversation_id, account)
