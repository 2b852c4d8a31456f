"""Admin user management"""

from typing import List

import structlog

from app.errors import NotFoundError, UnauthorizedError
from app.models.user import User, UserRole
from app.repositories import ReservationRepository, UserRepository
from app.schemas.admin import EmployeeCreate
from app.schemas.common import validate_input
from app.storage.indexes import IndexManager
from app.storage.query import IndexRebuild, QueryService

logger = structlog.get_logger()


class AdminService:
    """Operations reserved for admins"""

    def __init__(self, store):
        indexes = IndexManager(store)
        queries = QueryService.for_store(store, indexes)
        self.users = UserRepository(store, indexes, queries)
        self.reservations = ReservationRepository(store, indexes, queries)

    @staticmethod
    def _require_admin(actor: User) -> None:
        if not actor.has_permission(UserRole.ADMIN):
            raise UnauthorizedError("Admin access required")

    async def _get_with_role(self, user_id: str, role: UserRole) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None or user.role != role.value:
            raise NotFoundError(f"{role.value.capitalize()} not found")
        return user

    async def list_users(self, role: UserRole, actor: User) -> List[User]:
        self._require_admin(actor)
        users = await self.users.find(role)
        logger.info("Listed users", role=UserRole(role).value, count=len(users))
        return users

    async def create_employee(self, data, actor: User) -> User:
        """New employee whose initial password is the email address"""
        self._require_admin(actor)
        payload = validate_input(EmployeeCreate, data)
        employee = await self.users.create(
            {
                "name": payload.name,
                "email": payload.email,
                "phone": payload.phone,
                "password": payload.email,
                "role": UserRole.EMPLOYEE,
                "password_changed": False,
            }
        )
        logger.info("Employee created", admin=actor.email, employee=employee.email)
        return employee

    async def reset_employee_password(self, user_id: str, actor: User) -> User:
        """Password goes back to the email address and must be changed again"""
        self._require_admin(actor)
        employee = await self._get_with_role(user_id, UserRole.EMPLOYEE)
        employee = await self.users.set_password(employee, employee.email, changed=False)
        logger.info("Employee password reset", admin=actor.email, employee=employee.email)
        return employee

    async def set_disabled(self, user_id: str, role: UserRole, disabled: bool, actor: User) -> User:
        self._require_admin(actor)
        user = await self._get_with_role(user_id, UserRole(role))
        user.disabled = bool(disabled)
        user = await self.users.save(user)
        logger.info(
            "User disabled flag changed",
            admin=actor.email,
            user_id=user.id,
            disabled=user.disabled,
        )
        return user

    async def rebuild_indexes(self, actor: User) -> List[IndexRebuild]:
        """Rewrite role indexes and the global reservation index from the native engine"""
        self._require_admin(actor)
        results = [await self.users.rebuild_role_index(role) for role in UserRole]
        results.append(await self.reservations.rebuild_indexes())
        return results
