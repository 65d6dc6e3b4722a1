"""
SQL-backed document store with optimistic locking.

CONCURRENCY STRATEGY: Version-Checked Writes
============================================

Problem:
  Two curators change the same show at once (one reorders, one accepts a
  new artwork). Both read artworkOrder, both write their own copy back.
  Result: one change is silently lost.

Solution:
  Every document row has a `version` column.

  1. Read the row and remember its version
  2. UPDATE documents SET data = :merged, version = version + 1
     WHERE collection = :c AND id = :id AND version = :seen
  3. If rows_affected == 0, someone else modified the row -> re-read and retry

  Single-document updates retry internally. Transactions check every row
  they read and write inside one database transaction and raise
  VersionConflict so the caller's function is re-run on fresh state.
  Rows that were only read are checked with SELECT ... FOR UPDATE (in key
  order) so a concurrent commit cannot slip in between the check and
  COMMIT.

Queries load the collection and filter in Python: predicates run against
the schemaless JSON payload and collections are small (one gallery's
artists, artworks and shows).
"""

import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artspace.core.exceptions import NotFoundError, StoreError
from artspace.core.logging import get_logger
from artspace.core.metrics import record_store_operation
from artspace.infrastructure.document_store import (
    DocumentStore,
    FieldFilter,
    Transaction,
    VersionConflict,
)
from artspace.models.document import Document

logger = get_logger(__name__)


class SqlDocumentStore(DocumentStore):
    supports_transactions = True

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], max_attempts: int = 3):
        super().__init__(max_attempts=max_attempts)
        self.session_factory = session_factory

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        loaded = await self._load_versioned(collection, document_id)
        if loaded is None:
            return None
        return {**loaded[0], "id": document_id}

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: Optional[str] = None,
    ) -> str:
        record_store_operation("create")
        document_id = document_id or uuid.uuid4().hex
        body = copy.deepcopy(dict(data))
        body.pop("id", None)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        insert(Document).values(
                            collection=collection,
                            id=document_id,
                            data=body,
                            version=1,
                        )
                    )
        except SQLAlchemyError as exc:
            logger.error("store_create_failed", collection=collection, id=document_id, error=str(exc))
            raise StoreError(f"Failed to create {collection}/{document_id}") from exc
        return document_id

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        for attempt in range(1, self.max_attempts + 1):
            record_store_operation("update")
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        row = await self._select(session, collection, document_id)
                        if row is None:
                            raise NotFoundError(collection, document_id)

                        merged = {**(row.data or {}), **copy.deepcopy(dict(fields))}
                        merged.pop("id", None)
                        result = await session.execute(
                            update(Document)
                            .where(
                                Document.collection == collection,
                                Document.id == document_id,
                                Document.version == row.version,
                            )
                            .values(data=merged, version=Document.version + 1)
                        )
            except SQLAlchemyError as exc:
                logger.error("store_update_failed", collection=collection, id=document_id, error=str(exc))
                raise StoreError(f"Failed to update {collection}/{document_id}") from exc

            if result.rowcount == 1:
                return

            logger.info(
                "document_update_retry",
                collection=collection,
                document_id=document_id,
                attempt=attempt,
                reason="version_conflict",
            )

        raise StoreError(f"Update of {collection}/{document_id} kept conflicting. Please try again.")

    async def delete(self, collection: str, document_id: str) -> None:
        record_store_operation("delete")
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(Document).where(
                            Document.collection == collection,
                            Document.id == document_id,
                        )
                    )
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to delete {collection}/{document_id}") from exc

    async def query(self, collection: str, *filters: FieldFilter) -> List[Dict[str, Any]]:
        record_store_operation("query")
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Document).where(Document.collection == collection).order_by(Document.created_at)
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query {collection}") from exc

        return [
            {**copy.deepcopy(row.data or {}), "id": row.id}
            for row in rows
            if all(f.matches(row.data or {}) for f in filters)
        ]

    @staticmethod
    def _document_query(collection: str, document_id: str, lock: bool = False) -> Select:
        statement = select(Document).where(
            Document.collection == collection,
            Document.id == document_id,
        )
        if lock:
            # Held until commit so a read-only document cannot change under us
            statement = statement.with_for_update()
        return statement

    async def _select(
        self, session: AsyncSession, collection: str, document_id: str, lock: bool = False
    ) -> Optional[Document]:
        result = await session.execute(self._document_query(collection, document_id, lock))
        return result.scalar_one_or_none()

    async def _load_versioned(
        self, collection: str, document_id: str
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        record_store_operation("get")
        try:
            async with self.session_factory() as session:
                row = await self._select(session, collection, document_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {collection}/{document_id}") from exc
        if row is None:
            return None
        return copy.deepcopy(row.data or {}), row.version

    async def _commit(self, transaction: Transaction) -> None:
        reads = transaction.reads
        writes = transaction.writes
        if not writes:
            return

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    for key, seen_version in sorted(reads.items()):
                        if key in writes:
                            continue
                        row = await self._select(session, *key, lock=True)
                        current_version = row.version if row else None
                        if current_version != seen_version:
                            raise VersionConflict(key)

                    for key, body in writes.items():
                        collection, document_id = key
                        seen_version = reads[key]
                        if body is None:
                            record_store_operation("delete")
                            statement = delete(Document).where(
                                Document.collection == collection,
                                Document.id == document_id,
                                Document.version == seen_version,
                            )
                        else:
                            record_store_operation("update")
                            statement = (
                                update(Document)
                                .where(
                                    Document.collection == collection,
                                    Document.id == document_id,
                                    Document.version == seen_version,
                                )
                                .values(data=copy.deepcopy(body), version=Document.version + 1)
                            )
                        result = await session.execute(statement)
                        if result.rowcount == 0:
                            # Raising inside begin() rolls back the writes already issued
                            raise VersionConflict(key)
        except SQLAlchemyError as exc:
            logger.error("store_commit_failed", error=str(exc))
            raise StoreError("Failed to commit transaction") from exc
