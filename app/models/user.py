"""User document"""

import enum
from typing import Any, Dict, Literal, Optional

from app.models.base import StoredModel, Timestamp


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    GUEST = "guest"
    EMPLOYEE = "employee"
    ADMIN = "admin"


ROLE_HIERARCHY = {
    UserRole.GUEST.value: 1,
    UserRole.EMPLOYEE.value: 2,
    UserRole.ADMIN.value: 3,
}


class User(StoredModel):
    """Registered account, keyed ``user::<ts>::<rand>``"""

    id: str
    type: Literal["user"] = "user"

    # Profile
    name: str
    email: str
    phone: Optional[str] = None

    # Authentication
    password: Optional[str] = None
    password_changed: bool = False

    # Role and status
    role: UserRole = UserRole.GUEST
    disabled: bool = False

    # Timestamps
    created_at: Timestamp
    updated_at: Optional[Timestamp] = None

    @property
    def is_staff(self) -> bool:
        return UserRole(self.role) in (UserRole.EMPLOYEE, UserRole.ADMIN)

    def has_permission(self, required_role: UserRole) -> bool:
        """Check if user has at least the required role level"""
        required = UserRole(required_role).value
        return ROLE_HIERARCHY.get(UserRole(self.role).value, 0) >= ROLE_HIERARCHY.get(required, 0)

    def public(self) -> Dict[str, Any]:
        """Document form without the password hash"""
        document = self.to_document()
        document.pop("password", None)
        return document
