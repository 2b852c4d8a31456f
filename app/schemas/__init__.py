"""Pydantic schemas for request/response validation"""

from app.schemas.auth import (
    Token,
    UserCreate,
    RegisterRequest,
    ChangePasswordRequest,
    UserResponse,
    AuthResponse,
)
from app.schemas.reservation import (
    GuestContactInput,
    ReservationCreate,
    ReservationRequest,
    ReservationUpdate,
    ReservationFilter,
    ReservationResponse,
    ReservationListResponse,
    CancelResponse,
)
from app.schemas.change_log import (
    ChangeLogCreate,
    ChangeLogResponse,
    ChangeLogListResponse,
)
from app.schemas.admin import (
    EmployeeCreate,
    DisabledUpdate,
    UserListResponse,
    IndexRebuildResponse,
)

__all__ = [
    "Token",
    "UserCreate",
    "RegisterRequest",
    "ChangePasswordRequest",
    "UserResponse",
    "AuthResponse",
    "GuestContactInput",
    "ReservationCreate",
    "ReservationRequest",
    "ReservationUpdate",
    "ReservationFilter",
    "ReservationResponse",
    "ReservationListResponse",
    "CancelResponse",
    "ChangeLogCreate",
    "ChangeLogResponse",
    "ChangeLogListResponse",
    "EmployeeCreate",
    "DisabledUpdate",
    "UserListResponse",
    "IndexRebuildResponse",
]
