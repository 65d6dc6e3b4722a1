"""
Curation orderer: the display order of artworks within a show.

`artworkOrder` is a user-reorderable sequence kept next to the unordered
`artworkIds` membership set. Membership is authoritative: after every
operation here the order only contains member ids (order ⊆ membership).

Reorders always run as an optimistic read-modify-write transaction when
the store supports one. Two curators dragging artworks around the same
show at the same time is the most likely lost-update in the system.
"""

from typing import List, Optional, Sequence, Tuple

from artspace.core.config import Settings, get_settings
from artspace.core.exceptions import ValidationError
from artspace.core.logging import get_logger
from artspace.infrastructure.document_store import DocumentStore
from artspace.schemas.entities import Artwork, Show
from artspace.services.cache_service import get_cached_curation, set_cached_curation
from artspace.services.relationships import ARTWORKS, SHOWS, add_member, remove_member
from artspace.services.unit_of_work import UnitOfWork, run_in_unit_of_work

logger = get_logger(__name__)


def append_to_order(order: Optional[Sequence[str]], artwork_id: str) -> List[str]:
    """New art joins the back of the curation queue."""
    return add_member(order, artwork_id)


def remove_from_order(order: Optional[Sequence[str]], artwork_id: str) -> List[str]:
    return remove_member(order, artwork_id)


def resolve_order(
    show: Show,
    new_order: Sequence[str],
    append_missing: bool = True,
) -> Tuple[List[str], List[str]]:
    """
    Validate a caller-supplied order against the show and return
    `(order, dropped)`.

    Every id must be a member or already be in the stored order; ids that
    are only in the stale stored order are dropped. With `append_missing`,
    members the caller left out (not yet loaded on the client) are appended
    in their previous relative order.

    Raises:
        ValidationError: duplicate or unknown ids.
    """
    duplicates = sorted({i for i in new_order if list(new_order).count(i) > 1})
    if duplicates:
        raise ValidationError(
            "Artwork order contains duplicates",
            details={"duplicates": duplicates},
        )

    known = set(show.artwork_ids) | set(show.artwork_order)
    unknown = [i for i in new_order if i not in known]
    if unknown:
        raise ValidationError(
            f"Artwork order references artworks that are not in show {show.id}",
            details={"unknown": unknown},
        )

    members = set(show.artwork_ids)
    order = [i for i in new_order if i in members]
    dropped = [i for i in new_order if i not in members]

    if append_missing:
        for artwork_id in list(show.artwork_order) + list(show.artwork_ids):
            if artwork_id in members:
                order = add_member(order, artwork_id)

    return order, dropped


class CurationService:
    def __init__(self, store: DocumentStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    async def _run(self, fn):
        result, _ = await run_in_unit_of_work(
            self.store,
            fn,
            transactional=True,
            timeout=self.settings.STORE_TIMEOUT_SECONDS,
            max_attempts=self.settings.MAX_RETRY_ATTEMPTS,
        )
        return result

    async def reorder(self, show_id: str, new_order: Sequence[str]) -> Show:
        """Replace the show's curation order."""

        async def apply(uow: UnitOfWork) -> Show:
            show = await uow.show(show_id, required=True)
            order, dropped = resolve_order(show, new_order, self.settings.REORDER_APPEND_MISSING)
            if dropped:
                logger.info("stale_order_entries_dropped", show_id=show_id, dropped=dropped)
            if order != show.artwork_order:
                await uow.write(SHOWS, show_id, {"artworkOrder": order})
            return show.model_copy(update={"artwork_order": order})

        show = await self._run(apply)
        logger.info("show_reordered", show_id=show_id, size=len(show.artwork_order))
        return show

    async def append_to_order(self, show_id: str, artwork_id: str) -> Show:
        async def apply(uow: UnitOfWork) -> Show:
            show = await uow.show(show_id, required=True)
            if artwork_id not in show.artwork_ids:
                raise ValidationError(
                    f"Artwork {artwork_id} is not a member of show {show_id}",
                    details={"artwork_id": artwork_id},
                )
            order = append_to_order(show.artwork_order, artwork_id)
            if order != show.artwork_order:
                await uow.write(SHOWS, show_id, {"artworkOrder": order})
            return show.model_copy(update={"artwork_order": order})

        return await self._run(apply)

    async def remove_from_order(self, show_id: str, artwork_id: str) -> Show:
        async def apply(uow: UnitOfWork) -> Show:
            show = await uow.show(show_id, required=True)
            order = remove_from_order(show.artwork_order, artwork_id)
            if order != show.artwork_order:
                await uow.write(SHOWS, show_id, {"artworkOrder": order})
            return show.model_copy(update={"artwork_order": order})

        return await self._run(apply)

    async def curated_artworks(self, show_id: str) -> List[Artwork]:
        """The show's artworks in curation order, served from cache when possible."""
        cached = await get_cached_curation(show_id)
        if cached is not None:
            return [Artwork.model_validate(item) for item in cached]

        uow = UnitOfWork(self.store, timeout=self.settings.STORE_TIMEOUT_SECONDS)
        show = await uow.show(show_id, required=True)
        artworks = []
        for artwork_id in show.artwork_order:
            document = await uow.get(ARTWORKS, artwork_id)
            if document is not None:
                artworks.append(Artwork.model_validate(document))

        await set_cached_curation(show_id, [a.to_document() for a in artworks])
        return artworks
