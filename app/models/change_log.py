"""Reservation change log document"""

import enum
from typing import Any, Dict, Literal

from pydantic import ConfigDict

from app.models.base import StoredModel, Timestamp


class ChangeAction(str, enum.Enum):
    """Actions recorded against a reservation"""
    CREATE = "create"
    UPDATE = "update"
    CANCEL = "cancel"
    APPROVE = "approve"
    COMPLETE = "complete"


class ChangeLog(StoredModel):
    """Audit trail entry, keyed ``log::<ts>::<rand>``; never rewritten"""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["log"] = "log"

    reservation_id: str
    action: ChangeAction

    # Actor (user id)
    changed_by: str

    # Full reservation document at the time of the change
    snapshot: Dict[str, Any]

    created_at: Timestamp
