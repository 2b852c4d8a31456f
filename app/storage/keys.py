"""Document key layout and timestamp encoding

Keys are shared with existing deployments and must not change shape:

    user::<ts>::<rand>            email::<lowercased-email>
    reservation::<ts>::<rand>     log::<ts>::<rand>
    user_reservations::<userId>   global_reservations_index
    users_by_role::<role>         reservation_logs::<reservationId>
"""

import secrets
import string
from datetime import datetime, timezone

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9

# Fixed width so that lexical order of stored strings is chronological order
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

USER_PREFIX = "user"
RESERVATION_PREFIX = "reservation"
LOG_PREFIX = "log"
EMAIL_PREFIX = "email"

USERS_BY_ROLE = "users_by_role"
USER_RESERVATIONS = "user_reservations"
RESERVATION_LOGS = "reservation_logs"
GLOBAL_RESERVATIONS_INDEX = "global_reservations_index"


def utcnow() -> datetime:
    """Current time, timezone-aware UTC"""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime the way every document stores it"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def new_document_id(prefix: str) -> str:
    """``<prefix>::<epoch-ms>::<9 base-36 chars>``"""
    millis = int(utcnow().timestamp() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{prefix}::{millis}::{suffix}"


def new_user_id() -> str:
    return new_document_id(USER_PREFIX)


def new_reservation_id() -> str:
    return new_document_id(RESERVATION_PREFIX)


def new_log_id() -> str:
    return new_document_id(LOG_PREFIX)


def email_key(email: str) -> str:
    return f"{EMAIL_PREFIX}::{email.lower()}"


def users_by_role_key(role: str) -> str:
    return f"{USERS_BY_ROLE}::{role}"


def user_reservations_key(user_id: str) -> str:
    return f"{USER_RESERVATIONS}::{user_id}"


def reservation_logs_key(reservation_id: str) -> str:
    return f"{RESERVATION_LOGS}::{reservation_id}"


def index_name(index_key: str) -> str:
    """``users_by_role::guest`` -> ``users_by_role``"""
    return index_key.split("::", 1)[0]


def index_predicate(index_key: str) -> str:
    """``users_by_role::guest`` -> ``guest`` (empty for the global index)"""
    _, _, value = index_key.partition("::")
    return value
