"""Reservation schemas"""

from datetime import datetime
from typing import Optional, List
from pydantic import Field

from app.models.base import Timestamp
from app.models.reservation import ReservationStatus
from app.schemas.common import DisplayName, EmailAddress, InputModel, PhoneNumber, ResponseModel


class GuestContactInput(InputModel):
    """Guest contact details"""
    phone: PhoneNumber
    email: EmailAddress


class ReservationCreate(InputModel):
    """Create reservation request"""
    guest_name: DisplayName
    guest_contact_info: GuestContactInput
    expected_arrival_time: Timestamp
    table_size: int = Field(ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=500)
    status: Optional[ReservationStatus] = None
    created_by: Optional[str] = None


class ReservationRequest(InputModel):
    """Booking request from a guest; status and owner are set by the server"""
    guest_name: DisplayName
    guest_contact_info: GuestContactInput
    expected_arrival_time: Timestamp
    table_size: int = Field(ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=500)


class ReservationUpdate(InputModel):
    """Update reservation request; status moves through the workflow actions"""
    guest_name: Optional[DisplayName] = None
    guest_contact_info: Optional[GuestContactInput] = None
    expected_arrival_time: Optional[Timestamp] = None
    table_size: Optional[int] = Field(None, ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=500)


class ReservationFilter(InputModel):
    """Fixed-shape reservation lookup"""
    status: Optional[ReservationStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    guest_name: Optional[str] = None
    created_by: Optional[str] = None


class GuestContactResponse(ResponseModel):
    phone: str
    email: str


class ReservationResponse(ResponseModel):
    """Reservation response"""
    id: str
    guest_name: str
    guest_contact_info: GuestContactResponse
    expected_arrival_time: datetime
    table_size: int
    status: ReservationStatus
    special_requests: Optional[str]
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime


class ReservationListResponse(ResponseModel):
    """Reservation list, newest first"""
    items: List[ReservationResponse]
    total: int


class CancelResponse(ResponseModel):
    """Cancellation outcome; identical whether or not anything was left to cancel"""
    id: str
    status: ReservationStatus
    updated_at: datetime
