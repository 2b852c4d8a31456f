"""Authentication and user schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.user import UserRole
from app.schemas.common import DisplayName, EmailAddress, InputModel, PhoneNumber, ResponseModel


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserCreate(InputModel):
    """Create user request"""
    name: DisplayName
    email: EmailAddress
    password: str = Field(min_length=6)
    phone: PhoneNumber
    role: UserRole = UserRole.GUEST
    password_changed: bool = False


class RegisterRequest(InputModel):
    """Self-service registration; always creates a guest"""
    name: DisplayName
    email: EmailAddress
    password: str = Field(min_length=6)
    phone: PhoneNumber


class ChangePasswordRequest(InputModel):
    """Change own password"""
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class UserResponse(ResponseModel):
    """User response"""
    id: str
    name: str
    email: str
    phone: Optional[str]
    role: UserRole
    password_changed: bool
    disabled: bool
    created_at: datetime


class AuthResponse(ResponseModel):
    """Token plus the authenticated user"""
    token: Token
    user: UserResponse
