"""Reservation management API endpoints"""

from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends

from app.api.auth import get_current_active_user
from app.database import get_reservation_service
from app.models.reservation import ReservationStatus
from app.models.user import User
from app.schemas.change_log import ChangeLogListResponse, ChangeLogResponse
from app.schemas.reservation import (
    CancelResponse,
    ReservationRequest,
    ReservationFilter,
    ReservationListResponse,
    ReservationResponse,
    ReservationUpdate,
)
from app.services import ReservationService

router = APIRouter()


def _listing(reservations) -> ReservationListResponse:
    return ReservationListResponse(
        items=[ReservationResponse.model_validate(r) for r in reservations],
        total=len(reservations),
    )


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    status: Optional[ReservationStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    guest_name: Optional[str] = None,
    created_by: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """List reservations (staff), newest first"""
    criteria = ReservationFilter(
        status=status,
        start_date=start_date,
        end_date=end_date,
        guest_name=guest_name,
        created_by=created_by,
    )
    reservations = await service.list_reservations(current_user, criteria)
    return _listing(reservations)


@router.get("/mine", response_model=ReservationListResponse)
async def my_reservations(
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Reservations created by the current user, newest first"""
    reservations = await service.my_reservations(current_user)
    return _listing(reservations)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    reservation_data: ReservationRequest,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Create a new reservation"""
    return await service.create_reservation(reservation_data, current_user)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Get reservation details"""
    return await service.get_reservation(reservation_id, current_user)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    reservation_data: ReservationUpdate,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Update reservation"""
    return await service.update_reservation(reservation_id, reservation_data, current_user)


@router.post("/{reservation_id}/cancel", response_model=CancelResponse)
async def cancel_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Cancel a reservation; repeating the call is harmless"""
    return await service.cancel_reservation(reservation_id, current_user)


@router.post("/{reservation_id}/approve", response_model=ReservationResponse)
async def approve_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Approve a requested reservation (staff)"""
    return await service.approve_reservation(reservation_id, current_user)


@router.post("/{reservation_id}/complete", response_model=ReservationResponse)
async def complete_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Mark an approved reservation completed (staff)"""
    return await service.complete_reservation(reservation_id, current_user)


@router.get("/{reservation_id}/logs", response_model=ChangeLogListResponse)
async def reservation_change_logs(
    reservation_id: str,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Change history, newest first"""
    logs = await service.reservation_change_logs(reservation_id, current_user)
    return ChangeLogListResponse(
        items=[ChangeLogResponse.model_validate(log) for log in logs],
        total=len(logs),
    )
