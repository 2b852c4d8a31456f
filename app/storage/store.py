"""Document store adapter

Uniform get / insert / upsert / remove over opaque string keys, backed by a
single SQLAlchemy table. The same handle exposes the native query engine
(SQL over the JSON content) and tracks whether that engine is usable.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog
from sqlalchemy import delete, func, select, text
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import settings
from app.models.document import Base, Document
from app.storage.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    NotConnectedError,
    QueryUnavailableError,
    StorageError,
)

logger = structlog.get_logger()

# Dialects offering INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


@contextmanager
def _not_found_as(key: str) -> Iterator[None]:
    """Map the engine's own "no row" signal onto DocumentNotFoundError"""
    try:
        yield
    except NoResultFound as e:
        raise DocumentNotFoundError(key) from e


def _log_retry(retry_state) -> None:
    logger.warning(
        "Document store connection failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


class DocumentStore:
    """
    Handle on the document store.

    Constructed explicitly and passed to repositories; call ``connect()``
    before use and ``close()`` when done (or use ``async with``).
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        query_enabled: Optional[bool] = None,
        connect_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        **engine_options: Any,
    ):
        self.database_url = database_url or settings.database_url
        self.query_enabled = (
            settings.query_service_enabled if query_enabled is None else query_enabled
        )
        self.connect_retries = (
            settings.store_connect_retries if connect_retries is None else connect_retries
        )
        self.retry_delay = (
            settings.store_connect_retry_delay if retry_delay is None else retry_delay
        )
        engine_options.setdefault("echo", settings.database_echo)
        self.engine_options = engine_options

        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self.query_available = False

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> "DocumentStore":
        """Open the engine with bounded exponential backoff"""
        if self.connected:
            return self

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.connect_retries),
            wait=wait_exponential(multiplier=self.retry_delay, max=self.retry_delay * 6),
            retry=retry_if_exception_type((OSError, SQLAlchemyError)),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                await self._open()

        logger.info(
            "Document store connected",
            query_available=self.query_available,
        )
        return self

    async def _open(self) -> None:
        engine = create_async_engine(self.database_url, **self.engine_options)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception:
            await engine.dispose()
            raise

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        self.query_available = await self.probe_query_service()

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        self.query_available = False
        logger.info("Document store closed")

    async def __aenter__(self) -> "DocumentStore":
        return await self.connect()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise NotConnectedError("Document store not connected. Call connect() first.")
        return self._sessionmaker()

    async def ping(self) -> bool:
        """Round trip to the engine"""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (NotConnectedError, SQLAlchemyError, OSError):
            return False

    async def probe_query_service(self) -> bool:
        """Decide whether the native query engine should be attempted at all"""
        if not self.query_enabled:
            logger.info("Native query engine disabled by configuration")
            return False
        try:
            async with self.session() as session:
                await session.execute(select(func.count()).select_from(Document))
        except SQLAlchemyError as e:
            logger.warning("Native query engine unavailable", error=str(e))
            return False
        return True

    # ------------------------------------------------------------
    # Key/value operations
    # ------------------------------------------------------------

    async def get(self, key: str) -> Dict[str, Any]:
        """Document content; DocumentNotFoundError when absent"""
        async with self.session() as session:
            result = await session.execute(
                select(Document.content).where(Document.key == key)
            )
            with _not_found_as(key):
                content = result.scalar_one()
        return dict(content)

    async def lookup(self, key: str) -> Optional[Dict[str, Any]]:
        """Document content, or None when absent"""
        async with self.session() as session:
            result = await session.execute(
                select(Document.content).where(Document.key == key)
            )
            content = result.scalar_one_or_none()
        return dict(content) if content is not None else None

    async def insert(self, key: str, value: Dict[str, Any]) -> None:
        """Create; DocumentExistsError when the key is taken"""
        async with self.session() as session:
            session.add(Document(key=key, doc_type=value.get("type"), content=value))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DocumentExistsError(key) from e

    async def upsert(self, key: str, value: Dict[str, Any]) -> None:
        """Create or replace the whole document in one statement"""
        async with self.session() as session:
            await session.execute(self._upsert_statement(key, value))
            await session.commit()

    def _upsert_statement(self, key: str, value: Dict[str, Any]):
        dialect = self._engine.dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise StorageError(f"Upsert is not supported on {dialect}")

        statement = insert(Document).values(key=key, doc_type=value.get("type"), content=value)
        return statement.on_conflict_do_update(
            index_elements=[Document.key],
            set_={
                "doc_type": statement.excluded.doc_type,
                "content": statement.excluded.content,
            },
        )

    async def remove(self, key: str) -> None:
        """Delete; DocumentNotFoundError when absent"""
        async with self.session() as session:
            result = await session.execute(delete(Document).where(Document.key == key))
            if result.rowcount == 0:
                await session.rollback()
                raise DocumentNotFoundError(key)
            await session.commit()

    # ------------------------------------------------------------
    # Native query engine
    # ------------------------------------------------------------

    async def query(self, statement) -> List[Any]:
        """Run a select over the document table and return the first column"""
        if not self.query_available:
            raise QueryUnavailableError("Native query engine is not available")
        async with self.session() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())
