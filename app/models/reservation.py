"""Reservation document"""

import enum
from typing import Literal, Optional

from pydantic import computed_field

from app.models.base import StoredModel, Timestamp


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    REQUESTED = "requested"
    APPROVED = "approved"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class GuestContactInfo(StoredModel):
    phone: str
    email: str


class Reservation(StoredModel):
    """Table reservation, keyed ``reservation::<ts>::<rand>``"""

    id: str
    type: Literal["reservation"] = "reservation"

    # Guest information
    guest_name: str
    guest_contact_info: GuestContactInfo

    # Reservation details
    expected_arrival_time: Timestamp
    table_size: int
    special_requests: Optional[str] = None

    # Status
    status: ReservationStatus = ReservationStatus.REQUESTED

    # Owner (user id)
    created_by: Optional[str] = None

    # Metadata
    created_at: Timestamp
    updated_at: Timestamp

    @computed_field(alias="guestNameLower")
    @property
    def guest_name_lower(self) -> str:
        """Casefolded copy of the name, matched by guest name searches"""
        return self.guest_name.casefold()


class CancelledReservation(StoredModel):
    """Stand-in returned when a cancel finds nothing left to cancel"""

    id: str
    status: ReservationStatus = ReservationStatus.CANCELLED
    updated_at: Timestamp
