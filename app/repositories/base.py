"""Common plumbing for entity repositories"""

from typing import Generic, List, Optional, Type, TypeVar

from app.errors import NotFoundError
from app.models.base import StoredModel
from app.storage.errors import DocumentNotFoundError
from app.storage.indexes import IndexManager
from app.storage.query import DocumentQuery, QueryService

ModelT = TypeVar("ModelT", bound=StoredModel)


class DocumentRepository(Generic[ModelT]):
    """Entity access over a shared store handle, index manager and query facade"""

    model: Type[ModelT]
    doc_type: str

    def __init__(
        self,
        store,
        indexes: Optional[IndexManager] = None,
        queries: Optional[QueryService] = None,
    ):
        self.store = store
        self.indexes = indexes or IndexManager(store)
        self.queries = queries or QueryService.for_store(store, self.indexes)

    def _load(self, content) -> Optional[ModelT]:
        if content is None or content.get("type") != self.doc_type:
            return None
        return self.model.from_document(content)

    async def find_by_id(self, doc_id: str) -> Optional[ModelT]:
        return self._load(await self.store.lookup(doc_id))

    async def get(self, doc_id: str) -> ModelT:
        entity = await self.find_by_id(doc_id)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} not found: {doc_id}")
        return entity

    async def _find(self, query: DocumentQuery, **options) -> List[ModelT]:
        documents = await self.queries.find(query, **options)
        return [self.model.from_document(document) for document in documents]

    async def _remove(self, doc_id: str) -> None:
        try:
            await self.store.remove(doc_id)
        except DocumentNotFoundError as e:
            raise NotFoundError(f"{self.model.__name__} not found: {doc_id}") from e
