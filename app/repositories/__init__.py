"""Entity repositories over the document store"""

from app.repositories.users import UserRepository
from app.repositories.reservations import ReservationRepository
from app.repositories.change_logs import ChangeLogRepository

__all__ = [
    "UserRepository",
    "ReservationRepository",
    "ChangeLogRepository",
]
