"""
simple-crud — Document Store Client
====================================

What:  find-one / insert-one / replace-one / update-one / delete-one primitives
       against the configured collection, keyed by exact `path` equality.
How:   SQLAlchemy Core statements on an async engine. Every primitive runs in
       its own connection/transaction and is bounded by its own timeout.
Who:   Built once at startup (DocumentStore.from_settings) and shared by all
       concurrent requests through the PathRepository.
When:  Every repository operation performs at least one call here.

Error Translation:
    asyncio timeout          → StoreTimeoutError
    unique violation (path)  → DuplicateKeyError
    rejected update document → WriteError (nothing written)
    any other driver error   → StoreError

Concurrency:
    No locks are taken in Python. Each primitive is atomic on its own:
    update_one reads the row FOR UPDATE and writes it back in one transaction.
    Sequences of primitives (check-then-insert) are not atomic.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, NamedTuple, Optional, TypeVar

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from simplecrud.config import Settings
from simplecrud.database import build_store_url, create_store_engine
from simplecrud.exceptions import DuplicateKeyError, SimpleCrudError, StoreError, StoreTimeoutError
from simplecrud.models.document import documents_table
from simplecrud.services.update_operators import apply_update, validate_update

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UpdateResult(NamedTuple):
    matched_count: int
    modified_count: int


class DocumentStore:
    """
    Connection to one collection of the document store.

    Attributes:
        engine:      async engine (connection pool), shared by all requests
        collection:  collection / table name
        table:       SQLAlchemy Table for the collection
        timeout:     seconds allowed for each primitive
    """

    def __init__(self, engine: AsyncEngine, collection: str, timeout: float = 2.0):
        self.engine = engine
        self.collection = collection
        self.table = documents_table(collection)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        url = build_store_url(settings)
        logger.info(
            "Document store at %s, collection %s",
            url.render_as_string(hide_password=True),
            settings.db_collection,
        )
        engine = create_store_engine(settings, url)
        return cls(engine, settings.db_collection, timeout=settings.store_timeout)

    # ── Execution wrapper ─────────────────────────────────────────────────

    async def _run(
        self,
        operation: str,
        call: Callable[..., Awaitable[T]],
        *args: Any,
        timeout: Optional[float] = None,
    ) -> T:
        """Run one primitive under its own timeout and translate driver errors."""
        limit = timeout if timeout is not None else self.timeout
        try:
            return await asyncio.wait_for(call(*args), timeout=limit)
        except asyncio.TimeoutError:
            logger.error("Store operation %s timed out after %.1fs", operation, limit)
            raise StoreTimeoutError(operation=operation, timeout=limit) from None
        except SimpleCrudError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store operation %s failed: %s", operation, str(e))
            raise StoreError(
                message=f"Store operation '{operation}' failed",
                operation=operation,
                context={"error_type": type(e).__name__},
            ) from e

    # ── Primitives ────────────────────────────────────────────────────────

    async def find_one(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the document stored for `path`, or None."""
        return await self._run("find_one", self._find_one, path)

    async def insert_one(self, path: str, document: Dict[str, Any]) -> None:
        """Insert a new document. Raises DuplicateKeyError if `path` is taken."""
        await self._run("insert_one", self._insert_one, path, document)

    async def replace_one(self, path: str, document: Dict[str, Any]) -> int:
        """Replace the whole document for `path`; returns the matched count."""
        return await self._run("replace_one", self._replace_one, path, document)

    async def update_one(self, path: str, update_doc: Dict[str, Any]) -> UpdateResult:
        """
        Apply an operator-style update to the document for `path`.

        The update document is validated before the store is touched.

        Raises:
            WriteError: the update document was rejected; nothing was written.
        """
        validate_update(update_doc)
        return await self._run("update_one", self._update_one, path, update_doc)

    async def delete_one(self, path: str) -> int:
        """Delete the document for `path`; returns the deleted count (0 or 1)."""
        return await self._run("delete_one", self._delete_one, path)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self, timeout: Optional[float] = None) -> None:
        """Round trip to the store; raises StoreError / StoreTimeoutError."""
        await self._run("ping", self._ping, timeout=timeout)

    async def create_collection(self) -> None:
        """Create the collection table if it does not exist yet."""
        await self._run("create_collection", self._create_collection)

    async def close(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()

    # ── Statement implementations ─────────────────────────────────────────

    async def _find_one(self, path: str) -> Optional[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                select(self.table.c.document).where(self.table.c.path == path)
            )
            return result.scalar_one_or_none()

    async def _insert_one(self, path: str, document: Dict[str, Any]) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(
                    insert(self.table).values(path=path, document=document)
                )
        except IntegrityError as e:
            raise DuplicateKeyError(path) from e

    async def _replace_one(self, path: str, document: Dict[str, Any]) -> int:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                update(self.table)
                .where(self.table.c.path == path)
                .values(document=document)
            )
            return result.rowcount

    async def _update_one(self, path: str, update_doc: Dict[str, Any]) -> UpdateResult:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                select(self.table.c.document)
                .where(self.table.c.path == path)
                .with_for_update()
            )
            current = result.scalar_one_or_none()
            if current is None:
                return UpdateResult(matched_count=0, modified_count=0)

            # WriteError raised here rolls the transaction back
            updated = apply_update(current, update_doc)
            if updated == current:
                return UpdateResult(matched_count=1, modified_count=0)

            await conn.execute(
                update(self.table)
                .where(self.table.c.path == path)
                .values(document=updated)
            )
            return UpdateResult(matched_count=1, modified_count=1)

    async def _delete_one(self, path: str) -> int:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                delete(self.table).where(self.table.c.path == path)
            )
            return result.rowcount

    async def _ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def _create_collection(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.table.metadata.create_all)
