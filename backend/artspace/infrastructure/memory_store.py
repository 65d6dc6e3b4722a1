"""
In-process document store.

Used by the test suite and for local runs without a database. Each document
carries a version counter so transactions get the same optimistic conflict
behaviour as the SQL adapter.
"""

import asyncio
import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

from artspace.core.exceptions import NotFoundError
from artspace.core.metrics import record_store_operation
from artspace.infrastructure.document_store import (
    DocumentKey,
    DocumentStore,
    FieldFilter,
    Transaction,
    VersionConflict,
)


class MemoryDocumentStore(DocumentStore):
    supports_transactions = True

    def __init__(self, max_attempts: int = 3):
        super().__init__(max_attempts=max_attempts)
        self._documents: Dict[DocumentKey, Tuple[Dict[str, Any], int]] = {}
        self._lock = asyncio.Lock()

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        record_store_operation("get")
        stored = self._documents.get((collection, document_id))
        if stored is None:
            return None
        return {**copy.deepcopy(stored[0]), "id": document_id}

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
        async with self._lock:
            self._documents[(collection, document_id)] = (body, 1)
        return document_id

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        record_store_operation("update")
        async with self._lock:
            stored = self._documents.get((collection, document_id))
            if stored is None:
                raise NotFoundError(collection, document_id)
            data, version = stored
            merged = {**data, **copy.deepcopy(dict(fields))}
            merged.pop("id", None)
            self._documents[(collection, document_id)] = (merged, version + 1)

    async def delete(self, collection: str, document_id: str) -> None:
        record_store_operation("delete")
        async with self._lock:
            self._documents.pop((collection, document_id), None)

    async def query(self, collection: str, *filters: FieldFilter) -> List[Dict[str, Any]]:
        record_store_operation("query")
        results = []
        for (doc_collection, document_id), (data, _) in list(self._documents.items()):
            if doc_collection != collection:
                continue
            if all(f.matches(data) for f in filters):
                results.append({**copy.deepcopy(data), "id": document_id})
        return results

    def version_of(self, collection: str, document_id: str) -> Optional[int]:
        stored = self._documents.get((collection, document_id))
        return stored[1] if stored else None

    async def _load_versioned(
        self, collection: str, document_id: str
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        record_store_operation("get")
        stored = self._documents.get((collection, document_id))
        if stored is None:
            return None
        return copy.deepcopy(stored[0]), stored[1]

    async def _commit(self, transaction: Transaction) -> None:
        async with self._lock:
            for key, seen_version in transaction.reads.items():
                stored = self._documents.get(key)
                current_version = stored[1] if stored else None
                if current_version != seen_version:
                    raise VersionConflict(key)

            for key, body in transaction.writes.items():
                record_store_operation("update" if body is not None else "delete")
                if body is None:
                    self._documents.pop(key, None)
                else:
                    _, version = self._documents[key]
                    self._documents[key] = (copy.deepcopy(body), version + 1)
