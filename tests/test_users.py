"""Tests for the user repository"""

from datetime import datetime, timedelta, timezone

import pytest

from app.errors import ConflictError, NotFoundError, StorageIntegrityError, ValidationError
from app.models.user import UserRole
from app.repositories import UserRepository
from app.storage import keys


def user_data(**overrides):
    data = {
        "name": "Ada Lovelace",
        "email": "Ada@Example.com",
        "password": "secret123",
        "phone": "+1 (555) 010-0000",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_and_find_by_email(users, store):
    user = await users.create(user_data())

    assert user.id.startswith("user::")
    assert user.email == "ada@example.com"
    assert user.role == "guest"
    assert user.password != "secret123"
    assert users.verify_password(user, "secret123")

    found = await users.find_by_email("ADA@example.com")
    assert found is not None
    assert found.id == user.id
    assert found.created_at == user.created_at

    assert await store.get("email::ada@example.com") == {"userId": user.id}
    assert await users.indexes.read_index("users_by_role::guest") == [user.id]


@pytest.mark.asyncio
async def test_stored_document_shape(users, store):
    user = await users.create(user_data(role="employee"))

    document = await store.get(user.id)

    assert document["type"] == "user"
    assert document["role"] == "employee"
    assert document["passwordChanged"] is False
    assert document["createdAt"].endswith("Z")


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(users, store):
    first = await users.create(user_data())

    with pytest.raises(ConflictError):
        await users.create(user_data(email="ada@EXAMPLE.com", name="Impostor"))

    assert await store.get("email::ada@example.com") == {"userId": first.id}
    assert [u.id for u in await users.find(UserRole.GUEST)] == [first.id]


@pytest.mark.asyncio
async def test_invalid_input_lists_every_violation(users):
    with pytest.raises(ValidationError) as exc_info:
        await users.create(
            {"name": "  ", "email": "not-an-email", "password": "123", "phone": "call me"}
        )

    errors = exc_info.value.errors
    assert len(errors) == 4
    assert any("Please provide a valid email" in error for error in errors)
    assert any("Please provide a valid phone number" in error for error in errors)


@pytest.mark.asyncio
async def test_failed_read_back_undoes_the_write(users, store, monkeypatch):
    real_lookup = store.lookup

    async def lookup_without_password(key):
        content = await real_lookup(key)
        if content and key.startswith("user::"):
            content.pop("password", None)
        return content

    monkeypatch.setattr(store, "lookup", lookup_without_password)

    with pytest.raises(StorageIntegrityError) as exc_info:
        await users.create(user_data())

    monkeypatch.undo()
    assert await store.lookup(exc_info.value.key) is None
    assert await store.lookup("email::ada@example.com") is None


@pytest.mark.asyncio
async def test_find_with_password_requires_hash(users, store):
    user = await users.create(user_data())
    document = await store.get(user.id)
    del document["password"]
    await store.upsert(user.id, document)

    assert (await users.find_by_email(user.email)).password is None
    with pytest.raises(StorageIntegrityError):
        await users.find_by_email_with_password(user.email)


@pytest.mark.asyncio
async def test_find_by_email_with_dangling_pointer(users, store):
    await store.insert("email::ghost@example.com", {"userId": "user::0::gone"})

    assert await users.find_by_email("ghost@example.com") is None
    assert await users.find_by_email_with_password("ghost@example.com") is None


@pytest.mark.asyncio
async def test_find_by_role_newest_first(any_store, monkeypatch):
    users = UserRepository(any_store)
    base = datetime(2030, 1, 1, tzinfo=timezone.utc)
    created = []
    for step in range(3):
        monkeypatch.setattr(keys, "utcnow", lambda step=step: base + timedelta(minutes=step))
        created.append(await users.create(user_data(email=f"user{step}@example.com")))
    await users.create(user_data(email="staff@example.com", role=UserRole.EMPLOYEE))

    found = await users.find(UserRole.GUEST)

    assert [u.id for u in found] == [u.id for u in reversed(created)]


@pytest.mark.asyncio
async def test_role_lookup_paths_agree(users):
    guest = await users.create(user_data())
    staff = await users.create(user_data(email="staff@example.com", role=UserRole.EMPLOYEE))

    for role, expected in [(UserRole.GUEST, guest), (UserRole.EMPLOYEE, staff), (UserRole.ADMIN, None)]:
        query = users._role_query(role)
        native = await users.queries.find(query)
        fallback = query.newest_first(await users.queries.fallback.run(query))

        assert [doc["id"] for doc in fallback] == [doc["id"] for doc in native]
        assert [doc["id"] for doc in native] == ([expected.id] if expected else [])


@pytest.mark.asyncio
async def test_save_moves_email_pointer(users, store):
    user = await users.create(user_data())

    user.email = "Lovelace@Example.com"
    saved = await users.save(user)

    assert saved.email == "lovelace@example.com"
    assert saved.updated_at is not None
    assert await store.lookup("email::ada@example.com") is None
    assert (await users.find_by_email("lovelace@example.com")).id == user.id


@pytest.mark.asyncio
async def test_save_rejects_taken_email(users):
    await users.create(user_data())
    other = await users.create(user_data(email="grace@example.com"))

    other.email = "ada@example.com"
    with pytest.raises(ConflictError):
        await users.save(other)


@pytest.mark.asyncio
async def test_role_change_updates_index(users):
    user = await users.create(user_data())

    user.role = UserRole.EMPLOYEE.value
    await users.save(user)

    assert user.id in await users.indexes.read_index("users_by_role::employee")
    assert [u.id for u in await users.find(UserRole.EMPLOYEE)] == [user.id]


@pytest.mark.asyncio
async def test_set_password(users):
    user = await users.create(user_data())

    user = await users.set_password(user, "another456")

    assert user.password_changed is True
    assert users.verify_password(user, "another456")
    assert not users.verify_password(user, "secret123")


@pytest.mark.asyncio
async def test_delete_removes_user_and_pointer(users, store):
    user = await users.create(user_data())

    await users.delete(user.id)

    assert await users.find_by_id(user.id) is None
    assert await store.lookup("email::ada@example.com") is None
    with pytest.raises(NotFoundError):
        await users.delete(user.id)


@pytest.mark.asyncio
async def test_find_by_id_ignores_other_document_types(users, store):
    await store.insert("user::0::odd", {"type": "reservation", "id": "user::0::odd"})

    assert await users.find_by_id("user::0::odd") is None
