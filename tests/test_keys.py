"""Tests for key layout and timestamp encoding"""

import re
from datetime import datetime, timedelta, timezone

from app.storage import keys


ID_PATTERN = re.compile(r"^(user|reservation|log)::\d{13}::[0-9a-z]{9}$")


def test_generated_ids_follow_layout():
    for new_id, prefix in [
        (keys.new_user_id(), "user"),
        (keys.new_reservation_id(), "reservation"),
        (keys.new_log_id(), "log"),
    ]:
        assert ID_PATTERN.match(new_id)
        assert new_id.startswith(f"{prefix}::")


def test_generated_ids_are_unique():
    assert len({keys.new_reservation_id() for _ in range(200)}) == 200


def test_index_and_pointer_keys():
    assert keys.email_key("Ada@Example.com") == "email::ada@example.com"
    assert keys.users_by_role_key("guest") == "users_by_role::guest"
    assert keys.user_reservations_key("user::1::a") == "user_reservations::user::1::a"
    assert keys.reservation_logs_key("reservation::1::a") == "reservation_logs::reservation::1::a"
    assert keys.GLOBAL_RESERVATIONS_INDEX == "global_reservations_index"


def test_index_name_and_predicate():
    assert keys.index_name("users_by_role::admin") == "users_by_role"
    assert keys.index_predicate("users_by_role::admin") == "admin"
    assert keys.index_predicate("user_reservations::user::1::a") == "user::1::a"
    assert keys.index_name("global_reservations_index") == "global_reservations_index"
    assert keys.index_predicate("global_reservations_index") == ""


def test_timestamps_sort_chronologically():
    base = datetime(2030, 1, 15, 19, 0, tzinfo=timezone.utc)
    stamps = [keys.format_timestamp(base + timedelta(microseconds=step)) for step in (0, 1, 999999)]

    assert stamps == sorted(stamps)
    assert len({len(stamp) for stamp in stamps}) == 1
    assert stamps[0] == "2030-01-15T19:00:00.000000Z"


def test_timestamps_normalise_to_utc():
    naive = datetime(2030, 1, 15, 19, 0)
    offset = datetime(2030, 1, 15, 21, 0, tzinfo=timezone(timedelta(hours=2)))

    assert keys.format_timestamp(naive) == keys.format_timestamp(offset)
