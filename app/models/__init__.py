"""Persisted models: the document table and the entities stored in it"""

from app.models.document import Base, Document
from app.models.user import User, UserRole
from app.models.reservation import (
    Reservation,
    ReservationStatus,
    GuestContactInfo,
    CancelledReservation,
)
from app.models.change_log import ChangeLog, ChangeAction

__all__ = [
    "Base",
    "Document",
    "User",
    "UserRole",
    "Reservation",
    "ReservationStatus",
    "GuestContactInfo",
    "CancelledReservation",
    "ChangeLog",
    "ChangeAction",
]
