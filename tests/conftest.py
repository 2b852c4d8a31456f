"""Test configuration and fixtures"""

import os

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.auth import create_access_token
from app.models.user import UserRole
from app.repositories import ChangeLogRepository, ReservationRepository, UserRepository
from app.storage.store import DocumentStore


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _store(**options) -> DocumentStore:
    # One connection per engine so the in-memory database outlives each session
    return DocumentStore(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_retries=1,
        retry_delay=0,
        **options,
    )


@pytest.fixture
async def store():
    """Store with the native query engine available"""
    async with _store() as handle:
        yield handle


@pytest.fixture
async def fallback_store():
    """Store with the native query engine switched off"""
    async with _store(query_enabled=False) as handle:
        yield handle


@pytest.fixture(params=["native", "index"])
async def any_store(request):
    """Both lookup paths; results must not depend on which one answers"""
    async with _store(query_enabled=request.param == "native") as handle:
        yield handle


@pytest.fixture
def users(store):
    return UserRepository(store)


@pytest.fixture
def reservations(store):
    return ReservationRepository(store)


@pytest.fixture
def change_logs(store):
    return ChangeLogRepository(store)


@pytest.fixture
def reservation_payload():
    """Build a valid reservation create payload"""
    def build(**overrides):
        payload = {
            "guest_name": "Ada Lovelace",
            "guest_contact_info": {"phone": "+1 555 010 0000", "email": "ada@example.com"},
            "expected_arrival_time": "2030-01-15T19:00:00Z",
            "table_size": 4,
        }
        payload.update(overrides)
        return payload
    return build


async def _create_user(users: UserRepository, name: str, email: str, role: UserRole):
    return await users.create(
        {
            "name": name,
            "email": email,
            "password": "secret123",
            "phone": "+15550100000",
            "role": role,
            "password_changed": True,
        }
    )


@pytest.fixture
async def test_guest(users):
    """Create a guest user"""
    return await _create_user(users, "Guest User", "guest@example.com", UserRole.GUEST)


@pytest.fixture
async def other_guest(users):
    """Create a second guest user"""
    return await _create_user(users, "Other Guest", "other@example.com", UserRole.GUEST)


@pytest.fixture
async def test_employee(users):
    """Create an employee user"""
    return await _create_user(users, "Staff User", "staff@example.com", UserRole.EMPLOYEE)


@pytest.fixture
async def test_admin(users):
    """Create an admin user"""
    return await _create_user(users, "Admin User", "admin@example.com", UserRole.ADMIN)


@pytest.fixture
async def client(store):
    """Create test client bound to the test store"""
    app.state.store = store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.state.store = None


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def guest_headers(test_guest):
    return auth_headers(test_guest)


@pytest.fixture
def employee_headers(test_employee):
    return auth_headers(test_employee)


@pytest.fixture
def admin_headers(test_admin):
    return auth_headers(test_admin)
