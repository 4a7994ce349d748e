"""Availability Router - mentors manage weekly slots, anyone signed in can read them."""

from typing import List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_account
from api.models import SlotRequest, SlotResponse
from database.core.async_connection import get_session
from database.models.account import Account
from database.operations import availability_ops

router = APIRouter(prefix="/api/availability", tags=["Availability"])


@router.get("", response_model=List[SlotResponse])
async def my_slots(
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Slots of the signed-in mentor."""
    return await availability_ops.list_slots(session, account.id)


@router.post("", response_model=SlotResponse, status_code=201)
async def add_slot(
    request: SlotRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Add a weekly slot. Mentors only."""
    return await availability_ops.add_slot(
        session, account, request.day_of_week, request.start_time, request.end_time
    )


@router.delete("/{slot_id}", status_code=204)
async def remove_slot(
    slot_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Remove one of the signed-in mentor's slots."""
    await availability_ops.remove_slot(session, account, slot_id)
    return Response(status_code=204)


@router.get("/mentors/{mentor_id}", response_model=List[SlotResponse])
async def mentor_slots(
    mentor_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Slots of any mentor, for clients picking a time."""
    return await availability_ops.list_slots(session, mentor_id)
