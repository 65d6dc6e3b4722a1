"""
Document store interface consumed by the consistency engine.

The engine only needs get-by-id, field updates, predicate queries and an
optional optimistic transaction. Adapters (memory, SQL) implement the
abstract primitives; the retry loop for transactions lives here so every
adapter gets the same conflict semantics.

OPTIMISTIC TRANSACTIONS
=======================

  1. The transaction function reads documents through the Transaction.
     Each read records the version it saw.
  2. Writes are buffered on working copies (later reads see them).
  3. On commit the adapter applies the writes only if every document read
     still has the recorded version. Otherwise nothing is written and the
     function is re-run against fresh state.

  After `max_attempts` conflicting runs TransactionConflictError is raised.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from artspace.core.exceptions import NotFoundError, StoreTimeoutError, TransactionConflictError
from artspace.core.logging import get_logger
from artspace.core.metrics import transaction_conflicts, transaction_retries

logger = get_logger(__name__)

T = TypeVar("T")

DocumentKey = Tuple[str, str]

FILTER_OPERATORS = ("==", "!=", "in", "array_contains")


@dataclass(frozen=True)
class FieldFilter:
    """A single predicate on a top-level document field."""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def matches(self, data: Mapping[str, Any]) -> bool:
        current = data.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "!=":
            return current != self.value
        if self.op == "in":
            return current in self.value
        return isinstance(current, list) and self.value in current


def where(field_name: str, op: str, value: Any) -> FieldFilter:
    return FieldFilter(field_name, op, value)


class VersionConflict(Exception):
    """Raised by an adapter commit when a read document changed underneath."""

    def __init__(self, key: DocumentKey):
        self.key = key
        super().__init__(f"{key[0]}/{key[1]} changed during transaction")


@dataclass
class _WorkingCopy:
    data: Optional[Dict[str, Any]]
    version: Optional[int]
    dirty: bool = False
    deleted: bool = False


@dataclass
class Transaction:
    """
    Read-tracking, write-buffering view of a store used inside
    `DocumentStore.run_transaction`.
    """

    loader: Callable[[str, str], Awaitable[Optional[Tuple[Dict[str, Any], int]]]]
    _documents: Dict[DocumentKey, _WorkingCopy] = field(default_factory=dict)

    async def _load(self, collection: str, document_id: str) -> _WorkingCopy:
        key = (collection, document_id)
        if key not in self._documents:
            loaded = await self.loader(collection, document_id)
            if loaded is None:
                self._documents[key] = _WorkingCopy(data=None, version=None)
            else:
                data, version = loaded
                self._documents[key] = _WorkingCopy(data=copy.deepcopy(data), version=version)
        return self._documents[key]

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        working = await self._load(collection, document_id)
        if working.data is None or working.deleted:
            return None
        return {**copy.deepcopy(working.data), "id": document_id}

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        working = await self._load(collection, document_id)
        if working.data is None or working.deleted:
            raise NotFoundError(collection, document_id)
        working.data.update(copy.deepcopy(dict(fields)))
        working.data.pop("id", None)
        working.dirty = True

    async def delete(self, collection: str, document_id: str) -> None:
        working = await self._load(collection, document_id)
        if working.data is not None:
            working.deleted = True

    @property
    def reads(self) -> Dict[DocumentKey, Optional[int]]:
        return {key: working.version for key, working in self._documents.items()}

    @property
    def writes(self) -> Dict[DocumentKey, Optional[Dict[str, Any]]]:
        """Dirty documents; a None body means delete."""
        result: Dict[DocumentKey, Optional[Dict[str, Any]]] = {}
        for key, working in self._documents.items():
            if working.deleted:
                result[key] = None
            elif working.dirty:
                result[key] = working.data
        return result


class DocumentStore(ABC):
    """
    Generic document store over named collections.

    Documents are returned as plain dicts that include their `id`.
    """

    supports_transactions: bool = False

    def __init__(self, max_attempts: int = 3):
        self.max_attempts = max_attempts

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Return the document or None when it does not exist."""

    @abstractmethod
    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        document_id: Optional[str] = None,
    ) -> str:
        """Insert a document and return its id (generated when not given)."""

    @abstractmethod
    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        """
        Merge top-level fields into an existing document.

        Raises:
            NotFoundError: the document does not exist.
        """

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    async def query(self, collection: str, *filters: FieldFilter) -> List[Dict[str, Any]]:
        """Return every document in the collection matching all filters."""

    async def _load_versioned(
        self, collection: str, document_id: str
    ) -> Optional[Tuple[Dict[str, Any], int]]:
        raise NotImplementedError

    async def _commit(self, transaction: Transaction) -> None:
        raise NotImplementedError

    async def run_transaction(
        self,
        fn: Callable[[Transaction], Awaitable[T]],
        max_attempts: Optional[int] = None,
    ) -> T:
        """
        Run `fn` inside an optimistic transaction, re-running it on
        version conflicts.
        """
        if not self.supports_transactions:
            raise NotImplementedError(f"{type(self).__name__} does not support transactions")

        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            transaction = Transaction(loader=self._load_versioned)
            result = await fn(transaction)
            try:
                await self._commit(transaction)
            except VersionConflict as conflict:
                logger.info(
                    "transaction_retry",
                    attempt=attempt,
                    collection=conflict.key[0],
                    document_id=conflict.key[1],
                    reason="version_conflict",
                )
                if attempt == attempts:
                    transaction_conflicts.inc()
                    raise TransactionConflictError(
                        "Update failed due to concurrent changes. Please try again.",
                        attempts=attempts,
                    ) from conflict
                transaction_retries.inc()
                continue
            return result

        # Unreachable: the loop either returns or raises
        raise TransactionConflictError("Transaction did not complete", attempts=attempts)


async def bounded(awaitable: Awaitable[T], timeout: Optional[float], operation: str) -> T:
    """Await a store call, converting a timeout into StoreTimeoutError."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("store_timeout", operation=operation, timeout=timeout)
        raise StoreTimeoutError(f"Store {operation} timed out after {timeout}s") from exc
