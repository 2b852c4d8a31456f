"""Tests for the reservation repository"""

from datetime import datetime, timedelta, timezone

import pytest

from app.errors import NotFoundError, ValidationError
from app.models.reservation import ReservationStatus
from app.repositories import ReservationRepository
from app.schemas.reservation import ReservationFilter
from app.storage import keys


@pytest.mark.asyncio
async def test_create_defaults_and_indexes(reservations, store, reservation_payload):
    reservation = await reservations.create(reservation_payload(created_by="user::1::a"))

    assert reservation.id.startswith("reservation::")
    assert reservation.status == ReservationStatus.REQUESTED.value
    assert reservation.created_at == reservation.updated_at
    assert reservation.guest_contact_info.email == "ada@example.com"

    document = await store.get(reservation.id)
    assert document["type"] == "reservation"
    assert document["expectedArrivalTime"] == "2030-01-15T19:00:00.000000Z"
    assert document["guestNameLower"] == "ada lovelace"
    assert document["guestContactInfo"] == {"phone": "+1 555 010 0000", "email": "ada@example.com"}

    assert await reservations.indexes.read_index("user_reservations::user::1::a") == [reservation.id]
    assert await reservations.indexes.read_index(keys.GLOBAL_RESERVATIONS_INDEX) == [reservation.id]


@pytest.mark.asyncio
async def test_create_without_creator_uses_global_index_only(reservations, store, reservation_payload):
    reservation = await reservations.create(reservation_payload())

    assert reservation.created_by is None
    assert "createdBy" not in await store.get(reservation.id)
    assert await reservations.indexes.read_index(keys.GLOBAL_RESERVATIONS_INDEX) == [reservation.id]


@pytest.mark.asyncio
async def test_invalid_reservation_lists_every_violation(reservations, reservation_payload):
    with pytest.raises(ValidationError) as exc_info:
        await reservations.create(
            reservation_payload(
                table_size=0,
                guest_contact_info={"phone": "+15550100000", "email": "nope"},
                special_requests="x" * 501,
            )
        )

    assert len(exc_info.value.errors) == 3


@pytest.mark.asyncio
async def test_later_reservation_listed_first(any_store, reservation_payload, monkeypatch):
    repo = ReservationRepository(any_store)
    t1 = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    t2 = t1 + timedelta(seconds=1)

    monkeypatch.setattr(keys, "utcnow", lambda: t1)
    r1 = await repo.create(reservation_payload(guest_name="First", created_by="user::1::a"))
    monkeypatch.setattr(keys, "utcnow", lambda: t2)
    r2 = await repo.create(reservation_payload(guest_name="Second", created_by="user::1::a"))

    assert [r.id for r in await repo.find()] == [r2.id, r1.id]
    assert [r.id for r in await repo.find_by_created_by("user::1::a")] == [r2.id, r1.id]
    assert await repo.find_by_created_by("user::9::z") == []


@pytest.mark.asyncio
async def test_find_by_filters(any_store, reservation_payload):
    repo = ReservationRepository(any_store)
    early = await repo.create(
        reservation_payload(guest_name="Early Bird", expected_arrival_time="2030-01-10T18:00:00Z")
    )
    late = await repo.create(
        reservation_payload(
            guest_name="Night Owl",
            expected_arrival_time="2030-01-20T22:00:00Z",
            status="approved",
        )
    )

    assert [r.id for r in await repo.find({"status": "approved"})] == [late.id]
    assert [r.id for r in await repo.find({"guestName": "bird"})] == [early.id]
    assert [r.id for r in await repo.find(
        ReservationFilter(end_date=datetime(2030, 1, 15, tzinfo=timezone.utc))
    )] == [early.id]


@pytest.mark.asyncio
async def test_deleted_reservation_skipped_by_index_path(fallback_store, reservation_payload):
    repo = ReservationRepository(fallback_store)
    kept = await repo.create(reservation_payload())
    gone = await repo.create(reservation_payload())

    await repo.delete(gone.id)

    # The stale id is still in the index but never resolves
    assert gone.id in await repo.indexes.read_index(keys.GLOBAL_RESERVATIONS_INDEX)
    assert [r.id for r in await repo.find()] == [kept.id]


@pytest.mark.asyncio
async def test_save_replaces_document_and_reindexes(reservations, store, reservation_payload):
    reservation = await reservations.create(reservation_payload(created_by="user::1::a"))
    await store.remove(keys.GLOBAL_RESERVATIONS_INDEX)

    reservation.status = ReservationStatus.APPROVED
    saved = await reservations.save(reservation)

    assert saved.status == "approved"
    assert saved.updated_at > saved.created_at
    assert (await store.get(reservation.id))["status"] == "approved"
    assert await reservations.indexes.read_index(keys.GLOBAL_RESERVATIONS_INDEX) == [reservation.id]


@pytest.mark.asyncio
async def test_index_failure_does_not_fail_create(reservations, store, reservation_payload, monkeypatch):
    async def broken_upsert(key, value):
        raise RuntimeError("index write failed")

    monkeypatch.setattr(store, "upsert", broken_upsert)
    await store.insert(keys.GLOBAL_RESERVATIONS_INDEX, {"reservationIds": []})

    reservation = await reservations.create(reservation_payload())

    monkeypatch.undo()
    assert await store.lookup(reservation.id) is not None
    # The native engine still finds it
    assert [r.id for r in await reservations.find()] == [reservation.id]


@pytest.mark.asyncio
async def test_get_missing_reservation(reservations):
    assert await reservations.find_by_id("reservation::0::missing") is None
    with pytest.raises(NotFoundError):
        await reservations.get("reservation::0::missing")
    with pytest.raises(NotFoundError):
        await reservations.delete("reservation::0::missing")


@pytest.mark.asyncio
async def test_rebuild_creator_index(reservations, store, reservation_payload):
    mine = await reservations.create(reservation_payload(created_by="user::1::a"))
    await reservations.create(reservation_payload(created_by="user::2::b"))
    await store.remove("user_reservations::user::1::a")

    result = await reservations.rebuild_indexes("user::1::a")

    assert result.index_key == "user_reservations::user::1::a"
    assert await reservations.indexes.read_index(result.index_key) == [mine.id]


@pytest.mark.asyncio
async def test_renamed_guest_found_by_new_name(any_store, reservation_payload):
    repo = ReservationRepository(any_store)
    reservation = await repo.create(reservation_payload(guest_name="Ada Lovelace"))

    reservation.guest_name = "Ada King"
    await repo.save(reservation)

    assert (await any_store.get(reservation.id))["guestNameLower"] == "ada king"
    assert [r.id for r in await repo.find({"guestName": "KING"})] == [reservation.id]
    assert await repo.find({"guestName": "lovelace"}) == []
