"""
Consistency engine for artwork assignments.

Every artwork/show/location/artist relationship is stored on both sides,
so each state change rewrites several documents across collections.

CONSISTENCY STRATEGY
====================

Problem:
  Accepting an artwork touches the artwork, the show (artworkIds,
  artistIds, artworkOrder), the location (artworkIds, artistIds) and for
  batch acceptance the artist. Done as independent read-then-write calls,
  a crash or a concurrent curator can leave the documents disagreeing.

Solution:
  1. Each public operation runs in one UnitOfWork. When the store supports
     it (and USE_TRANSACTIONS is on) that unit is an optimistic
     transaction: all writes commit together, or the operation re-runs on
     fresh state after a version conflict.
  2. Writes go out in a fixed order: artwork, show, location, artist. In
     best-effort mode a crash leaves the artwork's own fields as the most
     recent statement of intent, which a reconciliation pass can use as
     ground truth.
  3. Array edits are computed with dedup from the current document, so
     re-issuing an operation is always safe.
  4. A missing show or location is a no-op for that document plus a
     PartialApplicationWarning; only a missing primary entity fails.

Reassignment without transactions is a two-phase saga: if the second phase
fails, the artwork is put back into its old show and location.
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from artspace.core.config import Settings, get_settings
from artspace.core.exceptions import (
    NotFoundError,
    StoreError,
    ValidationError,
)
from artspace.core.logging import get_logger
from artspace.core.metrics import assignment_latency, record_notification, record_operation, record_partial_application
from artspace.infrastructure.document_store import DocumentStore, where
from artspace.schemas.assignment import (
    ArtistAcceptanceResult,
    ArtistRemovalResult,
    AssignmentResult,
    DeletionResult,
    ShowClosureResult,
)
from artspace.schemas.entities import Artist, Artwork, Location, Show, ShowStatus
from artspace.services.curation_service import append_to_order, remove_from_order
from artspace.services.interfaces.notification import AcceptanceNotification, NotificationHook
from artspace.services.interfaces.null_notifier import NullNotifier
from artspace.services.relationships import (
    ARTISTS,
    ARTWORKS,
    LOCATIONS,
    SHOWS,
    Accepted,
    AssignmentState,
    InvariantViolation,
    Rejected,
    Shown,
    add_member,
    add_members,
    append_history,
    dedupe,
    find_violations,
    remove_member,
    remove_members,
    state_fields,
    state_of,
)
from artspace.services.state_machine import plan_transition
from artspace.services.unit_of_work import UnitOfWork, run_in_unit_of_work, utc_now_iso

logger = get_logger(__name__)


class AssignmentService:
    def __init__(
        self,
        store: DocumentStore,
        notifier: Optional[NotificationHook] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.notifier = notifier or NullNotifier()
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _run(self, operation: str, fn, transactional: Optional[bool] = None, **context):
        """Run `fn` in a unit of work, with logging and metrics around it."""
        if transactional is None:
            transactional = self.settings.USE_TRANSACTIONS
        started = time.perf_counter()
        try:
            result, uow = await run_in_unit_of_work(
                self.store,
                fn,
                transactional=transactional,
                timeout=self.settings.STORE_TIMEOUT_SECONDS,
                max_attempts=self.settings.MAX_RETRY_ATTEMPTS,
            )
        except NotFoundError as exc:
            record_operation(operation, "not_found")
            logger.warning(f"{operation}_failed", reason="not_found", missing=exc.message, **context)
            raise
        except ValidationError as exc:
            record_operation(operation, "invalid")
            logger.warning(f"{operation}_failed", reason="invalid", error=exc.message, **context)
            raise
        except StoreError as exc:
            record_operation(operation, "store_error")
            logger.error(f"{operation}_failed", reason="store_error", error=exc.message, **context)
            raise
        finally:
            assignment_latency.labels(operation=operation).observe(time.perf_counter() - started)

        for warning in uow.warnings:
            record_partial_application(warning.collection)
            logger.warning(
                "partial_application",
                operation=operation,
                collection=warning.collection,
                document_id=warning.document_id,
                reason=warning.reason,
                **context,
            )
        record_operation(operation, "success")
        return result

    async def _apply(
        self,
        uow: UnitOfWork,
        artwork: Artwork,
        target: AssignmentState,
        add_artist: bool = True,
    ) -> Artwork:
        """
        Move one artwork into `target`, updating every back reference.
        Write order: artwork, show(s), location(s).
        """
        plan = plan_transition(artwork, target)
        if plan.is_noop:
            return artwork

        fields: Dict[str, Any] = state_fields(target)
        if plan.record_history:
            fields["beenInShows"] = append_history(artwork.been_in_shows, target.show_id)
        await uow.write(ARTWORKS, artwork.id, fields)

        if plan.detach_show_id:
            await self._detach_from_show(uow, plan.detach_show_id, artwork.id)
        if plan.attach:
            await self._attach_to_show(uow, target.show_id, artwork, add_artist)

        if plan.detach_location_id:
            await self._detach_from_location(uow, plan.detach_location_id, artwork.id)
        if plan.attach and target.location_id:
            await self._attach_to_location(uow, target.location_id, artwork, add_artist)

        return await uow.artwork(artwork.id)

    async def _attach_to_show(self, uow: UnitOfWork, show_id: str, artwork: Artwork, add_artist: bool) -> None:
        show = await uow.show(show_id)
        if show is None:
            return
        updates = _changed({
            "artworkIds": (show.artwork_ids, add_member(show.artwork_ids, artwork.id)),
            "artworkOrder": (show.artwork_order, append_to_order(show.artwork_order, artwork.id)),
            "artistIds": (
                show.artist_ids,
                add_member(show.artist_ids, artwork.artist_id) if add_artist else show.artist_ids,
            ),
        })
        if updates:
            await uow.write_secondary(SHOWS, show_id, updates)

    async def _detach_from_show(self, uow: UnitOfWork, show_id: str, artwork_id: str) -> None:
        show = await uow.show(show_id)
        if show is None:
            return
        updates = _changed({
            "artworkIds": (show.artwork_ids, remove_member(show.artwork_ids, artwork_id)),
            "artworkOrder": (show.artwork_order, remove_from_order(show.artwork_order, artwork_id)),
        })
        if updates:
            await uow.write_secondary(SHOWS, show_id, updates)

    async def _attach_to_location(self, uow: UnitOfWork, location_id: str, artwork: Artwork, add_artist: bool) -> None:
        location = await uow.location(location_id)
        if location is None:
            return
        updates = _changed({
            "artworkIds": (location.artwork_ids, add_member(location.artwork_ids, artwork.id)),
            "artistIds": (
                location.artist_ids,
                add_member(location.artist_ids, artwork.artist_id) if add_artist else location.artist_ids,
            ),
        })
        if updates:
            await uow.write_secondary(LOCATIONS, location_id, updates)

    async def _detach_from_location(self, uow: UnitOfWork, location_id: str, artwork_id: str) -> None:
        location = await uow.location(location_id)
        if location is None:
            return
        updates = _changed({
            "artworkIds": (location.artwork_ids, remove_member(location.artwork_ids, artwork_id)),
        })
        if updates:
            await uow.write_secondary(LOCATIONS, location_id, updates)

    async def _update_artist_membership(
        self,
        uow: UnitOfWork,
        collection: str,
        holder_id: str,
        artist_id: str,
        add: bool,
    ) -> None:
        if collection == SHOWS:
            holder: Optional[Union[Show, Location]] = await uow.show(holder_id)
        else:
            holder = await uow.location(holder_id)
        if holder is None:
            return
        new_ids = add_member(holder.artist_ids, artist_id) if add else remove_member(holder.artist_ids, artist_id)
        if new_ids != holder.artist_ids:
            await uow.write_secondary(collection, holder_id, {"artistIds": new_ids})

    # ------------------------------------------------------------------
    # Single artwork operations
    # ------------------------------------------------------------------

    async def assign_artwork(self, artwork_id: str, show_id: str, location_id: str = "") -> AssignmentResult:
        """
        Accept an artwork into a show and (optionally) a location.

        An artwork currently referencing another show or location is
        detached from it first. Re-assigning to the same show is a no-op
        apart from re-asserting the back references.
        """
        target = Accepted(show_id, location_id or "")

        async def apply(uow: UnitOfWork) -> AssignmentResult:
            artwork = await uow.artwork(artwork_id)
            updated = await self._apply(uow, artwork, target)
            return AssignmentResult(artwork=updated, warnings=uow.warnings)

        result = await self._run("assign_artwork", apply, artwork_id=artwork_id, show_id=show_id)
        logger.info("artwork_assigned", artwork_id=artwork_id, show_id=show_id, location_id=location_id)
        return result

    async def reject_artwork(self, artwork_id: str) -> AssignmentResult:
        """
        Reject an artwork, clearing every reference to and from it. An
        artwork that holds no show or location is already unassigned and is
        left untouched, including a shown piece released by a closed show.
        """

        async def apply(uow: UnitOfWork) -> AssignmentResult:
            artwork = await uow.artwork(artwork_id)
            unplaced = not (artwork.artshow_id or artwork.location_id)
            if unplaced and artwork.show_status != ShowStatus.ACCEPTED:
                return AssignmentResult(artwork=artwork, warnings=uow.warnings)
            updated = await self._apply(uow, artwork, Rejected())
            return AssignmentResult(artwork=updated, warnings=uow.warnings)

        result = await self._run("reject_artwork", apply, artwork_id=artwork_id)
        logger.info("artwork_rejected", artwork_id=artwork_id)
        return result

    async def reassign_artwork(
        self,
        artwork_id: str,
        new_show_id: str,
        new_location_id: str = "",
    ) -> AssignmentResult:
        """
        Move an artwork to another show/location in two phases: rejection
        cleanup against the old references, then acceptance into the new.
        """
        target = Accepted(new_show_id, new_location_id or "")
        transactional = self.settings.USE_TRANSACTIONS and self.store.supports_transactions

        if transactional:
            async def both_phases(uow: UnitOfWork) -> AssignmentResult:
                artwork = await uow.artwork(artwork_id)
                plan_transition(artwork, target)
                if state_of(artwork) != target:
                    artwork = await self._apply(uow, artwork, Rejected())
                updated = await self._apply(uow, artwork, target)
                return AssignmentResult(artwork=updated, warnings=uow.warnings)

            result = await self._run("reassign_artwork", both_phases, artwork_id=artwork_id, show_id=new_show_id)
            logger.info("artwork_reassigned", artwork_id=artwork_id, show_id=new_show_id)
            return result

        previous: Dict[str, AssignmentState] = {}

        async def release(uow: UnitOfWork) -> AssignmentResult:
            artwork = await uow.artwork(artwork_id)
            plan_transition(artwork, target)
            previous["state"] = state_of(artwork)
            if previous["state"] == target:
                return AssignmentResult(artwork=artwork, warnings=uow.warnings)
            released = await self._apply(uow, artwork, Rejected())
            return AssignmentResult(artwork=released, warnings=uow.warnings)

        async def accept(uow: UnitOfWork) -> AssignmentResult:
            artwork = await uow.artwork(artwork_id)
            updated = await self._apply(uow, artwork, target)
            return AssignmentResult(artwork=updated, warnings=uow.warnings)

        released = await self._run("reassign_artwork", release, transactional=False, artwork_id=artwork_id)
        try:
            result = await self._run("reassign_artwork", accept, transactional=False, artwork_id=artwork_id)
        except StoreError:
            await self._compensate_reassignment(artwork_id, previous.get("state"))
            raise

        result.warnings = _merge_warnings(released.warnings, result.warnings)
        logger.info("artwork_reassigned", artwork_id=artwork_id, show_id=new_show_id)
        return result

    async def _compensate_reassignment(self, artwork_id: str, previous: Optional[AssignmentState]) -> None:
        if not isinstance(previous, Accepted):
            return
        restore = Accepted(previous.show_id, previous.location_id)

        async def apply(uow: UnitOfWork) -> Artwork:
            artwork = await uow.artwork(artwork_id)
            return await self._apply(uow, artwork, restore)

        try:
            await run_in_unit_of_work(
                self.store, apply, transactional=False, timeout=self.settings.STORE_TIMEOUT_SECONDS
            )
        except (StoreError, NotFoundError) as exc:
            logger.error(
                "reassignment_compensation_failed",
                artwork_id=artwork_id,
                show_id=restore.show_id,
                error=exc.message,
            )
            return
        logger.warning("reassignment_compensated", artwork_id=artwork_id, show_id=restore.show_id)

    async def mark_shown(self, artwork_id: str, show_id: str) -> AssignmentResult:
        """Record that an artwork was exhibited in `show_id`."""

        async def apply(uow: UnitOfWork) -> AssignmentResult:
            artwork = await uow.artwork(artwork_id)
            updated = await self._apply(uow, artwork, Shown(show_id, artwork.location_id))
            return AssignmentResult(artwork=updated, warnings=uow.warnings)

        result = await self._run("mark_shown", apply, artwork_id=artwork_id, show_id=show_id)
        logger.info("artwork_marked_shown", artwork_id=artwork_id, show_id=show_id)
        return result

    # ------------------------------------------------------------------
    # Artist-level operations
    # ------------------------------------------------------------------

    async def accept_artist_into_show(
        self,
        artist_id: str,
        show_id: str,
        location_id: str = "",
        selected_artwork_ids: Sequence[str] = (),
    ) -> ArtistAcceptanceResult:
        """
        Accept an artist into a show with a selection of their artworks.

        Selected artworks are accepted in selection order (which becomes
        their curation order); every other artwork of the artist is
        rejected. Show/location artist membership and the artist document
        are written once, after the per-artwork updates.
        """
        if not show_id:
            raise ValidationError("A show is required to accept an artist")
        selected = dedupe(selected_artwork_ids)
        target = Accepted(show_id, location_id or "")

        async def apply(uow: UnitOfWork) -> ArtistAcceptanceResult:
            artist = await uow.artist(artist_id)
            owned = {
                doc["id"]: Artwork.model_validate(doc)
                for doc in await uow.query(ARTWORKS, where("artistId", "==", artist_id))
            }

            foreign = [i for i in selected if i not in owned]
            if foreign:
                raise ValidationError(
                    f"Selected artworks do not belong to artist {artist_id}",
                    details={"artwork_ids": foreign},
                )

            previous_locations = {
                a.location_id for a in owned.values() if a.location_id and a.location_id != target.location_id
            }

            accepted: List[Artwork] = []
            rejected: List[Artwork] = []
            for artwork_id in selected:
                accepted.append(await self._apply(uow, owned[artwork_id], target, add_artist=False))
            for artwork_id, artwork in owned.items():
                if artwork_id not in selected:
                    rejected.append(await self._apply(uow, artwork, Rejected()))

            if artist.artshow_id and artist.artshow_id != show_id:
                await self._update_artist_membership(uow, SHOWS, artist.artshow_id, artist_id, add=False)
            await self._update_artist_membership(uow, SHOWS, show_id, artist_id, add=True)

            for old_location_id in sorted(previous_locations):
                await self._update_artist_membership(uow, LOCATIONS, old_location_id, artist_id, add=False)
            if target.location_id:
                await self._update_artist_membership(uow, LOCATIONS, target.location_id, artist_id, add=True)

            await uow.write(ARTISTS, artist_id, {
                "status": "showing",
                "role": "artist",
                "artshowId": show_id,
            })
            return ArtistAcceptanceResult(
                artist=await uow.artist(artist_id),
                accepted=accepted,
                rejected=rejected,
                warnings=uow.warnings,
            )

        result = await self._run("accept_artist_into_show", apply, artist_id=artist_id, show_id=show_id)
        logger.info(
            "artist_accepted",
            artist_id=artist_id,
            show_id=show_id,
            location_id=location_id,
            accepted=len(result.accepted),
            rejected=len(result.rejected),
        )

        result.notified = await self._notify(AcceptanceNotification(
            artist_id=artist_id,
            show_id=show_id,
            location_id=location_id or "",
            selected_artwork_count=len(result.accepted),
        ))
        return result

    async def remove_artist_from_show(self, artist_id: str) -> ArtistRemovalResult:
        """
        Take an artist out of their current show: every artwork still
        referencing a show or location is rejected and the artist is reset
        to on-boarding.
        """

        async def apply(uow: UnitOfWork) -> ArtistRemovalResult:
            artist = await uow.artist(artist_id)
            artworks = [
                Artwork.model_validate(doc)
                for doc in await uow.query(ARTWORKS, where("artistId", "==", artist_id))
            ]
            placed = [
                a for a in artworks
                if a.artshow_id or a.location_id or a.show_status == ShowStatus.ACCEPTED
            ]
            if not artist.artshow_id and not placed:
                return ArtistRemovalResult(artist=artist, warnings=uow.warnings)

            show_ids = dedupe([artist.artshow_id] + [a.artshow_id for a in placed])
            location_ids = dedupe([a.location_id for a in placed])

            released = [await self._apply(uow, artwork, Rejected()) for artwork in placed]

            for show_id in show_ids:
                if show_id:
                    await self._update_artist_membership(uow, SHOWS, show_id, artist_id, add=False)
            for location_id in location_ids:
                if location_id:
                    await self._update_artist_membership(uow, LOCATIONS, location_id, artist_id, add=False)

            await uow.write(ARTISTS, artist_id, {
                "artshowId": "",
                "status": self.settings.ARTIST_RESET_STATUS,
                "role": self.settings.ARTIST_RESET_ROLE,
            })
            return ArtistRemovalResult(
                artist=await uow.artist(artist_id),
                released=released,
                warnings=uow.warnings,
            )

        result = await self._run("remove_artist_from_show", apply, artist_id=artist_id)
        logger.info("artist_removed_from_show", artist_id=artist_id, released=len(result.released))
        return result

    async def _notify(self, event: AcceptanceNotification) -> bool:
        """Deliver a notification; failures never undo the assignment."""
        try:
            await asyncio.wait_for(
                self.notifier.notify(event),
                timeout=self.settings.NOTIFICATION_TIMEOUT_SECONDS,
            )
        except Exception as exc:
            record_notification(False)
            logger.warning(
                "notification_failed",
                artist_id=event.artist_id,
                show_id=event.show_id,
                error=str(exc) or type(exc).__name__,
            )
            return False
        record_notification(True)
        return True

    # ------------------------------------------------------------------
    # Artwork lifecycle
    # ------------------------------------------------------------------

    async def create_artwork(self, artist_id: str, fields: Mapping[str, Any]) -> Artwork:
        """Create an unassigned artwork owned by `artist_id`."""

        async def apply(uow: UnitOfWork) -> Artwork:
            artist = await uow.artist(artist_id)
            now = utc_now_iso()
            document = {
                **fields,
                "artistId": artist_id,
                "artshowId": "",
                "locationId": "",
                "showStatus": ShowStatus.NONE.value,
                "beenInShows": [],
                "sold": False,
                "pendingSale": False,
                "createdAt": now,
                "updatedAt": now,
            }
            artwork_id = await uow.create(ARTWORKS, document)
            await uow.write(ARTISTS, artist_id, {"artworks": add_member(artist.artworks, artwork_id)})
            return Artwork.model_validate({**document, "id": artwork_id})

        # Document creation is not part of store transactions
        artwork = await self._run("create_artwork", apply, transactional=False, artist_id=artist_id)
        logger.info("artwork_created", artwork_id=artwork.id, artist_id=artist_id)
        return artwork

    async def delete_artwork(self, artwork_id: str) -> DeletionResult:
        """
        Delete an artwork: rejection cleanup first (artwork, show,
        location), then the owner's list, then the document itself.
        """

        async def apply(uow: UnitOfWork) -> DeletionResult:
            artwork = await uow.artwork(artwork_id)
            await self._apply(uow, artwork, Rejected())

            if artwork.artist_id:
                owner = await uow.get(ARTISTS, artwork.artist_id)
                if owner is None:
                    uow.warn(ARTISTS, artwork.artist_id, "missing")
                else:
                    owned = Artist.model_validate(owner).artworks
                    if artwork_id in owned:
                        await uow.write_secondary(
                            ARTISTS, artwork.artist_id, {"artworks": remove_member(owned, artwork_id)}
                        )

            await uow.delete(ARTWORKS, artwork_id)
            return DeletionResult(artwork_id=artwork_id, warnings=uow.warnings)

        result = await self._run("delete_artwork", apply, artwork_id=artwork_id)
        logger.info("artwork_deleted", artwork_id=artwork_id)
        return result

    # ------------------------------------------------------------------
    # Show-level operations
    # ------------------------------------------------------------------

    async def close_show(self, show_id: str) -> ShowClosureResult:
        """
        Close a show after the exhibition: its artworks become shown and
        are released, its artists become shown, and each location moves the
        show's artists/artworks into its history arrays. The show moves its
        membership into `shownArtistIds`/`shownArtworkIds` (curated order
        first) so a released artwork is listed by no live show.
        """

        async def apply(uow: UnitOfWork) -> ShowClosureResult:
            show = await uow.show(show_id, required=True)
            if show.is_closed:
                return ShowClosureResult(show=show, warnings=uow.warnings)

            referencing = {
                doc["id"]: Artwork.model_validate(doc)
                for doc in await uow.query(ARTWORKS, where("artshowId", "==", show_id))
            }
            for artwork_id in show.artwork_ids:
                if artwork_id not in referencing:
                    document = await uow.get(ARTWORKS, artwork_id)
                    if document is None:
                        uow.warn(ARTWORKS, artwork_id, "missing")
                    elif Artwork.model_validate(document).show_status == ShowStatus.ACCEPTED:
                        referencing[artwork_id] = Artwork.model_validate(document)

            artworks = [a for a in referencing.values() if a.show_status != ShowStatus.REJECTED]
            artist_ids = dedupe(list(show.artist_ids) + [a.artist_id for a in artworks if a.artist_id])
            location_ids = dedupe([a.location_id for a in artworks if a.location_id])

            shown: List[Artwork] = []
            for artwork in artworks:
                await uow.write(ARTWORKS, artwork.id, {
                    "showStatus": ShowStatus.SHOWN.value,
                    "beenInShows": append_history(artwork.been_in_shows, show_id),
                    "artshowId": "",
                    "locationId": "",
                })
                shown.append(await uow.artwork(artwork.id))

            artwork_ids = [a.id for a in artworks]
            exhibited = [i for i in show.artwork_order if i in artwork_ids] + artwork_ids
            await uow.write(SHOWS, show_id, {
                "status": "closed",
                "artistIds": [],
                "artworkIds": [],
                "artworkOrder": [],
                "shownArtistIds": add_members(show.shown_artist_ids, artist_ids),
                "shownArtworkIds": add_members(show.shown_artwork_ids, exhibited),
            })

            for location_id in location_ids:
                location = await uow.location(location_id)
                if location is None:
                    continue
                await uow.write_secondary(LOCATIONS, location_id, {
                    "artistIds": remove_members(location.artist_ids, artist_ids),
                    "artworkIds": remove_members(location.artwork_ids, artwork_ids),
                    "artistsThatHaveShown": add_members(location.artists_that_have_shown, artist_ids),
                    "artworksThatHaveHungHere": add_members(location.artworks_that_have_hung_here, artwork_ids),
                })

            for artist_id in artist_ids:
                document = await uow.get(ARTISTS, artist_id)
                if document is None:
                    uow.warn(ARTISTS, artist_id, "missing")
                    continue
                artist = Artist.model_validate(document)
                updates: Dict[str, Any] = {
                    "status": "shown",
                    "beenInShows": append_history(artist.been_in_shows, show_id),
                }
                if artist.artshow_id == show_id:
                    updates["artshowId"] = ""
                await uow.write_secondary(ARTISTS, artist_id, updates)

            return ShowClosureResult(
                show=await uow.show(show_id, required=True),
                shown_artworks=shown,
                artist_ids=artist_ids,
                warnings=uow.warnings,
            )

        result = await self._run("close_show", apply, show_id=show_id)
        logger.info("show_closed", show_id=show_id, artworks=len(result.shown_artworks))
        return result

    async def audit_show(self, show_id: str) -> List[InvariantViolation]:
        """Read-only invariant check of one show and everything it references."""
        uow = UnitOfWork(self.store, timeout=self.settings.STORE_TIMEOUT_SECONDS)
        show = await uow.show(show_id, required=True)

        artworks: Dict[str, Artwork] = {
            doc["id"]: Artwork.model_validate(doc)
            for doc in await uow.query(ARTWORKS, where("artshowId", "==", show_id))
        }
        for artwork_id in dedupe(list(show.artwork_ids) + list(show.artwork_order)):
            if artwork_id not in artworks:
                document = await uow.get(ARTWORKS, artwork_id)
                if document is not None:
                    artworks[artwork_id] = Artwork.model_validate(document)

        locations: List[Location] = []
        for location_id in dedupe(a.location_id for a in artworks.values() if a.location_id):
            document = await uow.get(LOCATIONS, location_id)
            if document is not None:
                locations.append(Location.model_validate(document))

        artists: List[Artist] = []
        for artist_id in show.artist_ids:
            document = await uow.get(ARTISTS, artist_id)
            if document is not None:
                artists.append(Artist.model_validate(document))

        violations = find_violations(artworks.values(), [show], locations, artists)
        logger.info("show_audited", show_id=show_id, violations=len(violations))
        return violations


def _changed(candidates: Dict[str, tuple]) -> Dict[str, List[str]]:
    """Keep only the array fields whose new value differs from the current one."""
    return {name: new for name, (old, new) in candidates.items() if list(old) != list(new)}


def _merge_warnings(*groups):
    merged = []
    for group in groups:
        for warning in group:
            if warning not in merged:
                merged.append(warning)
    return merged
