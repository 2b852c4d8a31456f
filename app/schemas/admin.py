"""Admin user-management schemas"""

from typing import List, Optional

from app.schemas.auth import UserResponse
from app.schemas.common import DisplayName, EmailAddress, InputModel, PhoneNumber, ResponseModel


class EmployeeCreate(InputModel):
    """New employee; initial password is the email address"""
    name: DisplayName
    email: EmailAddress
    phone: PhoneNumber


class DisabledUpdate(InputModel):
    disabled: bool


class UserListResponse(ResponseModel):
    items: List[UserResponse]
    total: int


class IndexRebuildResponse(ResponseModel):
    index_key: str
    count: int
    error: Optional[str] = None
