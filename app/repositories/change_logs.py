"""Change log recorder"""

from typing import List

import structlog

from app.models.change_log import ChangeLog
from app.repositories.base import DocumentRepository
from app.schemas.change_log import ChangeLogCreate
from app.schemas.common import validate_input
from app.storage import keys
from app.storage.query import DocumentQuery, Equals, IndexRebuild

logger = structlog.get_logger()


class ChangeLogRepository(DocumentRepository[ChangeLog]):
    """Append-only audit records, indexed per reservation"""

    model = ChangeLog
    doc_type = "log"

    def _reservation_query(self, reservation_id: str) -> DocumentQuery:
        return DocumentQuery(
            doc_type=self.doc_type,
            index_key=keys.reservation_logs_key(reservation_id),
            conditions=[Equals("reservationId", reservation_id)],
        )

    async def create(self, data) -> ChangeLog:
        payload = validate_input(ChangeLogCreate, data)

        log = ChangeLog(
            id=keys.new_log_id(),
            reservation_id=payload.reservation_id,
            action=payload.action,
            changed_by=payload.changed_by,
            snapshot=payload.snapshot,
            created_at=keys.utcnow(),
        )

        await self.store.insert(log.id, log.to_document())
        logger.info(
            "Change log created",
            log_id=log.id,
            reservation_id=log.reservation_id,
            action=log.action,
        )

        await self.indexes.advisory_add(keys.reservation_logs_key(log.reservation_id), log.id)
        return log

    async def find_by_reservation_id(self, reservation_id: str) -> List[ChangeLog]:
        """
        Logs for a reservation, newest first.

        An empty native answer may come from a query index that has not
        caught up yet, so the per-reservation index is consulted as well.
        """
        return await self._find(
            self._reservation_query(reservation_id),
            empty_is_ambiguous=True,
        )

    async def delete(self, log_id: str) -> None:
        await self._remove(log_id)

    async def rebuild_index(self, reservation_id: str) -> IndexRebuild:
        return await self.queries.rebuild_index(self._reservation_query(reservation_id))
