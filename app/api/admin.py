"""Admin user-management API endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.auth import require_role
from app.database import get_admin_service
from app.models.user import User, UserRole
from app.schemas.admin import (
    DisabledUpdate,
    EmployeeCreate,
    IndexRebuildResponse,
    UserListResponse,
)
from app.schemas.auth import UserResponse
from app.services import AdminService

router = APIRouter()


def _listing(users) -> UserListResponse:
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.get("/employees", response_model=UserListResponse)
async def list_employees(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """List employees, newest first"""
    return _listing(await service.list_users(UserRole.EMPLOYEE, current_user))


@router.post("/employees", response_model=UserResponse, status_code=201)
async def create_employee(
    employee_data: EmployeeCreate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """Create an employee whose initial password is their email"""
    return await service.create_employee(employee_data, current_user)


@router.post("/employees/{user_id}/reset-password", response_model=UserResponse)
async def reset_employee_password(
    user_id: str,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """Reset an employee's password to their email"""
    return await service.reset_employee_password(user_id, current_user)


@router.patch("/employees/{user_id}/disabled", response_model=UserResponse)
async def set_employee_disabled(
    user_id: str,
    update: DisabledUpdate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """Enable or disable an employee"""
    return await service.set_disabled(user_id, UserRole.EMPLOYEE, update.disabled, current_user)


@router.get("/guests", response_model=UserListResponse)
async def list_guests(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """List guests, newest first"""
    return _listing(await service.list_users(UserRole.GUEST, current_user))


@router.patch("/guests/{user_id}/disabled", response_model=UserResponse)
async def set_guest_disabled(
    user_id: str,
    update: DisabledUpdate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """Enable or disable a guest"""
    return await service.set_disabled(user_id, UserRole.GUEST, update.disabled, current_user)


@router.post("/indexes/rebuild", response_model=List[IndexRebuildResponse])
async def rebuild_indexes(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: AdminService = Depends(get_admin_service),
):
    """Rewrite secondary indexes from the native query engine"""
    results = await service.rebuild_indexes(current_user)
    return [IndexRebuildResponse.model_validate(result) for result in results]
