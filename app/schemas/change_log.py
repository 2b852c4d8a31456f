"""Change log schemas"""

from datetime import datetime
from typing import Any, Dict, List
from pydantic import Field

from app.models.change_log import ChangeAction
from app.schemas.common import InputModel, ResponseModel


class ChangeLogCreate(InputModel):
    """Record a change against a reservation"""
    reservation_id: str = Field(min_length=1)
    action: ChangeAction
    changed_by: str = Field(min_length=1)
    snapshot: Dict[str, Any]


class ChangeLogResponse(ResponseModel):
    """Change log entry"""
    id: str
    reservation_id: str
    action: ChangeAction
    changed_by: str
    snapshot: Dict[str, Any]
    created_at: datetime


class ChangeLogListResponse(ResponseModel):
    items: List[ChangeLogResponse]
    total: int
