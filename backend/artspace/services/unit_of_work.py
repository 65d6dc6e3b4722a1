"""
Per-operation working set of documents.

A UnitOfWork wraps either a store Transaction (writes buffered, committed
atomically with version checks) or the DocumentStore itself (legacy
best-effort mode: every write goes out immediately, in call order). Engine
code is written once against this class and runs in both modes.

Each operation owns its working copies: a document is fetched once and
later reads see the operation's own writes.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar, Union

from artspace.core.exceptions import NotFoundError, PartialApplicationWarning
from artspace.infrastructure.document_store import DocumentStore, FieldFilter, Transaction, bounded
from artspace.schemas.entities import Artist, Artwork, Location, Show
from artspace.services.relationships import ARTISTS, ARTWORKS, LOCATIONS, SHOWS

T = TypeVar("T")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UnitOfWork:
    def __init__(
        self,
        store: DocumentStore,
        transaction: Optional[Transaction] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.transaction = transaction
        self.timeout = timeout
        self.warnings: List[PartialApplicationWarning] = []
        self._cache: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}

    @property
    def transactional(self) -> bool:
        return self.transaction is not None

    @property
    def _backend(self) -> Union[Transaction, DocumentStore]:
        return self.transaction if self.transaction is not None else self.store

    # -- reads ---------------------------------------------------------------

    async def get(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        key = (collection, document_id)
        if key not in self._cache:
            self._cache[key] = await bounded(
                self._backend.get(collection, document_id), self.timeout, "get"
            )
        cached = self._cache[key]
        return copy.deepcopy(cached) if cached is not None else None

    async def query(self, collection: str, *filters: FieldFilter) -> List[Dict[str, Any]]:
        """
        Query the store, then route every hit through `get` so that inside a
        transaction the documents are version-tracked and later reads see
        this operation's writes.
        """
        hits = await bounded(self.store.query(collection, *filters), self.timeout, "query")
        results = []
        for hit in hits:
            key = (collection, hit["id"])
            if key not in self._cache and not self.transactional:
                self._cache[key] = hit
            document = await self.get(collection, hit["id"])
            if document is not None and all(f.matches(document) for f in filters):
                results.append(document)
        return results

    async def artwork(self, artwork_id: str) -> Artwork:
        document = await self.get(ARTWORKS, artwork_id)
        if document is None:
            raise NotFoundError(ARTWORKS, artwork_id)
        return Artwork.model_validate(document)

    async def artist(self, artist_id: str) -> Artist:
        document = await self.get(ARTISTS, artist_id)
        if document is None:
            raise NotFoundError(ARTISTS, artist_id)
        return Artist.model_validate(document)

    async def show(self, show_id: str, required: bool = False) -> Optional[Show]:
        document = await self.get(SHOWS, show_id)
        if document is None:
            if required:
                raise NotFoundError(SHOWS, show_id)
            self.warn(SHOWS, show_id, "missing")
            return None
        return Show.model_validate(document)

    async def location(self, location_id: str) -> Optional[Location]:
        document = await self.get(LOCATIONS, location_id)
        if document is None:
            self.warn(LOCATIONS, location_id, "missing")
            return None
        return Location.model_validate(document)

    # -- writes --------------------------------------------------------------

    async def write(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        """Update a document, stamping `updatedAt`. Raises NotFoundError."""
        stamped = {**fields, "updatedAt": utc_now_iso()}
        await bounded(self._backend.update(collection, document_id, stamped), self.timeout, "update")

        key = (collection, document_id)
        cached = self._cache.get(key)
        if cached is not None:
            cached.update(copy.deepcopy(stamped))

    async def write_secondary(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> bool:
        """
        Update a referenced (non-primary) document. A missing document is
        recorded as a partial application instead of failing the operation.
        """
        try:
            await self.write(collection, document_id, fields)
        except NotFoundError:
            self.warn(collection, document_id, "missing")
            return False
        return True

    async def create(self, collection: str, data: Mapping[str, Any], document_id: Optional[str] = None) -> str:
        return await bounded(self.store.create(collection, data, document_id), self.timeout, "create")

    async def delete(self, collection: str, document_id: str) -> None:
        await bounded(self._backend.delete(collection, document_id), self.timeout, "delete")
        self._cache[(collection, document_id)] = None

    # -- bookkeeping ---------------------------------------------------------

    def warn(self, collection: str, document_id: str, reason: str) -> None:
        warning = PartialApplicationWarning(collection=collection, document_id=document_id, reason=reason)
        if warning not in self.warnings:
            self.warnings.append(warning)


async def run_in_unit_of_work(
    store: DocumentStore,
    fn: Callable[[UnitOfWork], Awaitable[T]],
    *,
    transactional: bool,
    timeout: Optional[float] = None,
    max_attempts: Optional[int] = None,
) -> Tuple[T, UnitOfWork]:
    """
    Run `fn` against a fresh UnitOfWork, inside an optimistic transaction
    when requested and supported. Returns the result together with the
    UnitOfWork of the attempt that committed.
    """
    attempts: List[UnitOfWork] = []

    async def attempt(transaction: Optional[Transaction] = None) -> T:
        unit = UnitOfWork(store, transaction=transaction, timeout=timeout)
        attempts.append(unit)
        return await fn(unit)

    if transactional and store.supports_transactions:
        overall = None
        if timeout is not None:
            overall = timeout * (max_attempts or store.max_attempts) * 4
        result = await bounded(store.run_transaction(attempt, max_attempts), overall, "transaction")
    else:
        result = await attempt()
    return result, attempts[-1]
