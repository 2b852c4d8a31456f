"""Query service facade

A lookup is described once as a ``DocumentQuery`` (type discriminator,
conditions, and the index that can serve it). The native engine runs it as
SQL with bound parameters; the index fallback runs the same conditions in
memory over the documents the index points at. Both paths must return the
same set, and results are always newest first.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import select

from app.models.document import Document
from app.storage.indexes import IndexManager
from app.storage.keys import format_timestamp

logger = structlog.get_logger()


def _stored_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


class Condition(ABC):
    """One predicate on a top-level document field"""

    def __init__(self, field_name: str, value: Any):
        self.field = field_name
        self.value = _stored_value(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.field!r}, {self.value!r})"

    def _column(self):
        return Document.content[self.field].as_string()

    @abstractmethod
    def clause(self):
        """SQLAlchemy expression; the value is always a bound parameter"""

    @abstractmethod
    def matches(self, content: Dict[str, Any]) -> bool:
        """Same predicate evaluated on a loaded document"""


class Equals(Condition):
    def clause(self):
        return self._column() == self.value

    def matches(self, content):
        return content.get(self.field) == self.value


class AtLeast(Condition):
    def clause(self):
        return self._column() >= self.value

    def matches(self, content):
        current = content.get(self.field)
        return isinstance(current, str) and current >= self.value


class AtMost(Condition):
    def clause(self):
        return self._column() <= self.value

    def matches(self, content):
        current = content.get(self.field)
        return isinstance(current, str) and current <= self.value


class ContainsText(Condition):
    """
    Case-insensitive substring match against a field stored casefolded.

    The search term is casefolded in Python; the engine compares as-is.
    """

    def __init__(self, field_name: str, value: str):
        super().__init__(field_name, value.casefold())

    def clause(self):
        return self._column().contains(self.value, autoescape=True)

    def matches(self, content):
        current = content.get(self.field)
        return isinstance(current, str) and self.value in current


@dataclass
class DocumentQuery:
    """A fixed access pattern: one entity type, its filters, and its index"""

    doc_type: str
    index_key: str
    conditions: Sequence[Condition] = field(default_factory=tuple)
    order_field: str = "createdAt"

    def where(self) -> list:
        return [Document.doc_type == self.doc_type] + [c.clause() for c in self.conditions]

    def statement(self):
        return (
            select(Document.content)
            .where(*self.where())
            .order_by(Document.content[self.order_field].as_string().desc())
        )

    def key_statement(self):
        return select(Document.key).where(*self.where())

    def matches(self, content: Dict[str, Any]) -> bool:
        if content.get("type") != self.doc_type:
            return False
        return all(c.matches(content) for c in self.conditions)

    def newest_first(self, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(
            documents,
            key=lambda d: d.get(self.order_field) or "",
            reverse=True,
        )


@dataclass
class IndexRebuild:
    index_key: str
    count: int
    error: Optional[str] = None


class QueryCapable(ABC):
    """A way of answering a ``DocumentQuery``"""

    name = "query"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def run(self, query: DocumentQuery) -> List[Dict[str, Any]]:
        """Matching documents, in no particular order"""

    @abstractmethod
    async def keys(self, query: DocumentQuery) -> List[str]:
        """Keys of the matching documents"""


class NativeQuery(QueryCapable):
    """SQL over the JSON content of the document table"""

    name = "native"

    def __init__(self, store):
        self.store = store

    @property
    def available(self) -> bool:
        return self.store.query_available

    async def run(self, query):
        return await self.store.query(query.statement())

    async def keys(self, query):
        return await self.store.query(query.key_statement())


class IndexFallback(QueryCapable):
    """Read the index, fetch each id, filter in memory"""

    name = "index"

    def __init__(self, indexes: IndexManager):
        self.indexes = indexes

    async def run(self, query):
        ids = await self.indexes.read_index(query.index_key)
        return [
            content
            async for content in self.indexes.resolve_and_filter(
                ids, self.indexes.store.get, query.matches
            )
        ]

    async def keys(self, query):
        return [content["id"] for content in await self.run(query)]


class QueryService:
    """
    Native engine first, index fallback second.

    The fallback is an availability measure, not a correctness one. When
    both paths fail the caller gets an empty list.
    """

    def __init__(self, primary: QueryCapable, fallback: IndexFallback):
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def for_store(cls, store, indexes: Optional[IndexManager] = None) -> "QueryService":
        return cls(NativeQuery(store), IndexFallback(indexes or IndexManager(store)))

    @property
    def indexes(self) -> IndexManager:
        return self.fallback.indexes

    async def find(
        self,
        query: DocumentQuery,
        *,
        empty_is_ambiguous: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Matching documents, newest first.

        With ``empty_is_ambiguous`` an empty native answer is not trusted and
        the index is consulted as well.
        """
        if self.primary.available:
            try:
                documents = await self.primary.run(query)
            except Exception as e:
                logger.warning(
                    "Native query failed, falling back to index",
                    doc_type=query.doc_type,
                    index_key=query.index_key,
                    error=str(e),
                )
            else:
                if documents or not empty_is_ambiguous:
                    return query.newest_first(documents)
                logger.info(
                    "Native query returned no rows, trying index fallback",
                    doc_type=query.doc_type,
                    index_key=query.index_key,
                )
        else:
            logger.debug("Native query engine unavailable, using index", index_key=query.index_key)

        try:
            documents = await self.fallback.run(query)
        except Exception as e:
            logger.error(
                "Index fallback failed",
                doc_type=query.doc_type,
                index_key=query.index_key,
                error=str(e),
            )
            return []
        return query.newest_first(documents)

    async def rebuild_index(self, query: DocumentQuery) -> IndexRebuild:
        """Rewrite ``query.index_key`` from the native engine's answer"""
        try:
            ids = await self.primary.keys(query)
        except Exception as e:
            logger.warning("Index rebuild skipped", index_key=query.index_key, error=str(e))
            return IndexRebuild(index_key=query.index_key, count=0, error=str(e))
        written = await self.indexes.rebuild(query.index_key, ids)
        return IndexRebuild(index_key=query.index_key, count=len(written))
