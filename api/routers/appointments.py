"""
Appointments Router

Booking, listing and the appointment lifecycle. Conflict prevention and the
status state machine live in ``database.operations.booking_ops``.
"""

from typing import List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_account
from api.models import (
    AppointmentRequest,
    AppointmentResponse,
    StatusUpdateRequest,
    RescheduleRequest,
)
from database.core.async_connection import get_session
from database.models.account import Account
from database.operations import booking_ops

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Appointments where the signed-in account is client or mentor."""
    return await booking_ops.list_appointments(session, account)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    request: AppointmentRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """
    Book a mentor.

    The time must fall inside one of the mentor's slots for that weekday and
    must not overlap another active booking of the mentor.
    """
    return await booking_ops.create_appointment(
        session,
        account,
        request.mentor_id,
        request.date,
        request.start_time,
        request.end_time,
        notes=request.notes,
        appointment_type=request.appointment_type,
        amount=request.amount,
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await booking_ops.get_appointment(session, appointment_id, account)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: int,
    request: StatusUpdateRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Confirm, complete or cancel an appointment."""
    return await booking_ops.update_status(session, appointment_id, account, request.status)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    return await booking_ops.cancel_appointment(session, appointment_id, account)


@router.put("/{appointment_id}/schedule", response_model=AppointmentResponse)
async def reschedule(
    appointment_id: int,
    request: RescheduleRequest,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Move a pending or confirmed appointment to a new time."""
    return await booking_ops.reschedule_appointment(
        session,
        appointment_id,
        account,
        request.date,
        request.start_time,
        request.end_time,
    )


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: int,
    account: Account = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
):
    """Delete a pending appointment. Later states must be cancelled instead."""
    await booking_ops.delete_appointment(session, appointment_id, account)
    return Response(status_code=204)
