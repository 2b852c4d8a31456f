"""Use cases composed from the repositories"""

from app.services.reservations import ReservationService
from app.services.admin import AdminService

__all__ = ["ReservationService", "AdminService"]
