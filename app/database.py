"""Store handle wiring for the FastAPI app"""

from fastapi import Depends, Request

from app.config import settings
from app.repositories import UserRepository
from app.services import AdminService, ReservationService
from app.storage.errors import NotConnectedError
from app.storage.store import DocumentStore


def create_store() -> DocumentStore:
    """Store handle configured from settings; not yet connected"""
    return DocumentStore(settings.database_url)


async def get_store(request: Request) -> DocumentStore:
    """The application's open store handle"""
    store = getattr(request.app.state, "store", None)
    if store is None or not store.connected:
        raise NotConnectedError("Document store not connected")
    return store


async def get_users(store: DocumentStore = Depends(get_store)) -> UserRepository:
    return UserRepository(store)


async def get_reservation_service(
    store: DocumentStore = Depends(get_store),
) -> ReservationService:
    return ReservationService(store)


async def get_admin_service(store: DocumentStore = Depends(get_store)) -> AdminService:
    return AdminService(store)
