"""Reservation repository"""

from typing import List, Optional

import structlog

from app.models.reservation import GuestContactInfo, Reservation, ReservationStatus
from app.repositories.base import DocumentRepository
from app.schemas.common import validate_input
from app.schemas.reservation import ReservationCreate, ReservationFilter
from app.storage import keys
from app.storage.query import (
    AtLeast,
    AtMost,
    ContainsText,
    DocumentQuery,
    Equals,
    IndexRebuild,
)

logger = structlog.get_logger()


class ReservationRepository(DocumentRepository[Reservation]):
    model = Reservation
    doc_type = "reservation"

    def _query(self, criteria: ReservationFilter) -> DocumentQuery:
        conditions = []
        if criteria.status:
            conditions.append(Equals("status", criteria.status))
        if criteria.guest_name:
            conditions.append(ContainsText("guestNameLower", criteria.guest_name))
        if criteria.start_date:
            conditions.append(AtLeast("expectedArrivalTime", criteria.start_date))
        if criteria.end_date:
            conditions.append(AtMost("expectedArrivalTime", criteria.end_date))
        if criteria.created_by:
            conditions.append(Equals("createdBy", criteria.created_by))
            index_key = keys.user_reservations_key(criteria.created_by)
        else:
            index_key = keys.GLOBAL_RESERVATIONS_INDEX
        return DocumentQuery(doc_type=self.doc_type, index_key=index_key, conditions=conditions)

    async def _index(self, reservation: Reservation) -> None:
        if reservation.created_by:
            await self.indexes.advisory_add(
                keys.user_reservations_key(reservation.created_by), reservation.id
            )
        await self.indexes.advisory_add(keys.GLOBAL_RESERVATIONS_INDEX, reservation.id)

    async def create(self, data) -> Reservation:
        """Validate and insert; the creator and global indexes are advisory"""
        payload = validate_input(ReservationCreate, data)
        now = keys.utcnow()

        reservation = Reservation(
            id=keys.new_reservation_id(),
            guest_name=payload.guest_name,
            guest_contact_info=GuestContactInfo(
                phone=payload.guest_contact_info.phone,
                email=payload.guest_contact_info.email,
            ),
            expected_arrival_time=payload.expected_arrival_time,
            table_size=payload.table_size,
            status=payload.status or ReservationStatus.REQUESTED,
            special_requests=payload.special_requests,
            created_by=payload.created_by,
            created_at=now,
            updated_at=now,
        )

        await self.store.insert(reservation.id, reservation.to_document())
        await self._index(reservation)

        logger.info(
            "Reservation created",
            reservation_id=reservation.id,
            created_by=reservation.created_by,
        )
        return reservation

    async def find(self, criteria=None) -> List[Reservation]:
        """Reservations matching ``criteria``, newest first"""
        criteria = validate_input(ReservationFilter, criteria)
        return await self._find(self._query(criteria))

    async def find_by_created_by(self, user_id: str) -> List[Reservation]:
        return await self.find(ReservationFilter(created_by=user_id))

    async def save(self, reservation: Reservation) -> Reservation:
        """
        Full-document replace. Re-asserts index membership so an index that
        lost this id in a race picks it up again.
        """
        reservation = reservation.model_copy(
            update={
                "status": ReservationStatus(reservation.status).value,
                "updated_at": keys.utcnow(),
            }
        )
        await self.store.upsert(reservation.id, reservation.to_document())
        await self._index(reservation)
        return reservation

    async def delete(self, reservation_id: str) -> None:
        """Remove the document; index entries are left to go stale"""
        await self._remove(reservation_id)
        logger.info("Reservation deleted", reservation_id=reservation_id)

    async def rebuild_indexes(self, user_id: Optional[str] = None) -> IndexRebuild:
        """Rewrite the global index, or one creator's index, from the native engine"""
        return await self.queries.rebuild_index(
            self._query(ReservationFilter(created_by=user_id))
        )
