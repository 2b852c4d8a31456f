"""Secondary index maintenance

An index document maps one predicate value to the ids of the documents that
satisfy it, e.g. ``users_by_role::guest -> {"role": "guest", "userIds": [...]}``.
Indexes are advisory: the native query engine is authoritative when it is
up, so updates here are read-modify-write without any lock and the last
writer wins. Ids that no longer resolve are skipped on read.
"""

from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    TypeVar,
)

import structlog

from app.storage import keys
from app.storage.errors import DocumentExistsError, DocumentNotFoundError

logger = structlog.get_logger()

T = TypeVar("T")


class IndexLayout(NamedTuple):
    ids_field: str
    predicate_field: Optional[str]


INDEX_LAYOUTS: Dict[str, IndexLayout] = {
    keys.USERS_BY_ROLE: IndexLayout("userIds", "role"),
    keys.USER_RESERVATIONS: IndexLayout("reservationIds", "userId"),
    keys.GLOBAL_RESERVATIONS_INDEX: IndexLayout("reservationIds", None),
    keys.RESERVATION_LOGS: IndexLayout("logIds", "reservationId"),
}

DEFAULT_LAYOUT = IndexLayout("ids", None)


def layout_for(index_key: str) -> IndexLayout:
    return INDEX_LAYOUTS.get(keys.index_name(index_key), DEFAULT_LAYOUT)


async def advisory_write(operation: Awaitable[Any], event: str, **context: Any) -> bool:
    """
    Await a secondary write whose failure must not fail the caller.

    Failures go to the log and are reported as ``False``; primary writes
    never go through here.
    """
    try:
        await operation
    except Exception as e:
        logger.warning(event, error=str(e), **context)
        return False
    return True


class IndexManager:
    """Maintains index documents in the same keyspace as the entities"""

    def __init__(self, store):
        self.store = store

    def _new_index(self, index_key: str, ids: List[str], now: str) -> Dict[str, Any]:
        layout = layout_for(index_key)
        document: Dict[str, Any] = {}
        if layout.predicate_field:
            document[layout.predicate_field] = keys.index_predicate(index_key)
        document[layout.ids_field] = ids
        document["createdAt"] = now
        document["updatedAt"] = now
        return document

    async def read_index(self, index_key: str) -> List[str]:
        """Referenced ids in stored order; empty when the index does not exist"""
        content = await self.store.lookup(index_key)
        if content is None:
            return []
        ids = content.get(layout_for(index_key).ids_field)
        return list(ids) if isinstance(ids, list) else []

    async def add_to_index(self, index_key: str, doc_id: str) -> List[str]:
        """
        Add ``doc_id`` to the index, creating the index if absent.

        Adding an id that is already present changes nothing. Returns the id
        list as written.
        """
        layout = layout_for(index_key)

        # One retry covers losing the create race to another writer
        for _ in range(2):
            now = keys.format_timestamp(keys.utcnow())
            content = await self.store.lookup(index_key)

            if content is None:
                content = self._new_index(index_key, [doc_id], now)
                try:
                    await self.store.insert(index_key, content)
                except DocumentExistsError:
                    continue
                logger.debug("Index created", index_key=index_key, doc_id=doc_id)
                return content[layout.ids_field]

            existing = content.get(layout.ids_field)
            ids = list(existing) if isinstance(existing, list) else []
            if doc_id in ids:
                return ids

            ids.append(doc_id)
            content[layout.ids_field] = ids
            content["updatedAt"] = now
            await self.store.upsert(index_key, content)
            logger.debug("Index updated", index_key=index_key, doc_id=doc_id, size=len(ids))
            return ids

        raise DocumentExistsError(index_key)

    async def advisory_add(self, index_key: str, doc_id: str) -> bool:
        """``add_to_index`` whose failure is logged, never raised"""
        return await advisory_write(
            self.add_to_index(index_key, doc_id),
            "Index update failed",
            index_key=index_key,
            doc_id=doc_id,
        )

    async def rebuild(self, index_key: str, ids: Iterable[str]) -> List[str]:
        """Replace the index contents with an authoritative id list"""
        now = keys.format_timestamp(keys.utcnow())
        unique_ids = list(dict.fromkeys(ids))
        previous = await self.store.lookup(index_key)
        document = self._new_index(index_key, unique_ids, now)
        if previous and previous.get("createdAt"):
            document["createdAt"] = previous["createdAt"]
        await self.store.upsert(index_key, document)
        logger.info("Index rebuilt", index_key=index_key, size=len(unique_ids))
        return unique_ids

    async def resolve_and_filter(
        self,
        ids: Iterable[str],
        fetch: Callable[[str], Awaitable[T]],
        predicate: Optional[Callable[[T], bool]] = None,
    ) -> AsyncIterator[T]:
        """
        Fetch each id and yield the ones matching ``predicate``.

        Ids whose document is gone are stale index entries and are skipped.
        Every call reads storage afresh.
        """
        for doc_id in ids:
            try:
                item = await fetch(doc_id)
            except DocumentNotFoundError:
                logger.debug("Skipping stale index entry", doc_id=doc_id)
                continue
            if predicate is None or predicate(item):
                yield item
