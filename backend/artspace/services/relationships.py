"""
Relationship model for artworks, shows, locations and artists.

Membership is stored redundantly on both sides: an artwork points at its
show and location, and shows/locations keep `artworkIds`/`artistIds`
arrays (plus the show's `artworkOrder`). All array edits go through the
helpers below so deduplication and missing-array handling happen in one
place instead of ad hoc filter/concat at every call site.

The assignment state of an artwork is spread over three document fields
(`showStatus`, `artshowId`, `locationId`). `AssignmentState` folds them
into one tagged value so combinations such as "accepted without a show"
cannot be constructed.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

from artspace.core.exceptions import ValidationError
from artspace.schemas.entities import Artist, Artwork, Location, Show, ShowStatus

# Collection names as stored in the document store
ARTWORKS = "artworks"
SHOWS = "artshows"
LOCATIONS = "locations"
ARTISTS = "users"


# ---------------------------------------------------------------------------
# Membership helpers
# ---------------------------------------------------------------------------


def add_member(members: Optional[Sequence[str]], member_id: str) -> List[str]:
    """Return `members` with `member_id` appended unless already present."""
    current = list(members or [])
    if member_id and member_id not in current:
        current.append(member_id)
    return current


def add_members(members: Optional[Sequence[str]], member_ids: Iterable[str]) -> List[str]:
    current = list(members or [])
    for member_id in member_ids:
        current = add_member(current, member_id)
    return current


def remove_member(members: Optional[Sequence[str]], member_id: str) -> List[str]:
    return [m for m in (members or []) if m != member_id]


def remove_members(members: Optional[Sequence[str]], member_ids: Iterable[str]) -> List[str]:
    excluded = set(member_ids)
    return [m for m in (members or []) if m not in excluded]


def append_history(history: Optional[Sequence[str]], show_id: str) -> List[str]:
    """
    Append `show_id` to an append-only history unless it is already the
    last entry. Non-adjacent repeats are kept: an artwork can come back to
    the same show in a later cycle.
    """
    current = list(history or [])
    if show_id and (not current or current[-1] != show_id):
        current.append(show_id)
    return current


def dedupe(ids: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


# ---------------------------------------------------------------------------
# Tagged assignment state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Unassigned:
    status = ShowStatus.NONE


@dataclass(frozen=True)
class Rejected:
    status = ShowStatus.REJECTED


@dataclass(frozen=True)
class Accepted:
    show_id: str
    location_id: str = ""
    status = ShowStatus.ACCEPTED

    def __post_init__(self):
        if not self.show_id:
            raise ValidationError("An accepted artwork must reference a show")


@dataclass(frozen=True)
class Shown:
    show_id: str
    location_id: str = ""
    status = ShowStatus.SHOWN

    def __post_init__(self):
        if not self.show_id:
            raise ValidationError("A shown artwork must reference the show it was shown in")


AssignmentState = Union[Unassigned, Rejected, Accepted, Shown]


def state_of(artwork: Artwork) -> AssignmentState:
    """
    Read the tagged state from an artwork's fields.

    Legacy documents may say "accepted" with an empty show id; those read
    as Unassigned since nothing references them. A shown artwork whose
    show was closed no longer references it; its last history entry is
    used instead.
    """
    status = artwork.show_status
    if status == ShowStatus.ACCEPTED and artwork.artshow_id:
        return Accepted(artwork.artshow_id, artwork.location_id)
    if status == ShowStatus.SHOWN:
        show_id = artwork.artshow_id or (artwork.been_in_shows[-1] if artwork.been_in_shows else "")
        if show_id:
            return Shown(show_id, artwork.location_id)
    if status == ShowStatus.REJECTED:
        return Rejected()
    return Unassigned()


def state_fields(state: AssignmentState) -> Dict[str, str]:
    """Document fields that encode `state` on the artwork."""
    if isinstance(state, Accepted):
        return {
            "artshowId": state.show_id,
            "locationId": state.location_id,
            "showStatus": ShowStatus.ACCEPTED.value,
        }
    if isinstance(state, Rejected):
        return {"artshowId": "", "locationId": "", "showStatus": ShowStatus.REJECTED.value}
    if isinstance(state, Shown):
        return {"showStatus": ShowStatus.SHOWN.value}
    return {"artshowId": "", "locationId": "", "showStatus": ShowStatus.NONE.value}


# ---------------------------------------------------------------------------
# Invariant audit
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvariantViolation:
    invariant: str
    entity_id: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"invariant": self.invariant, "id": self.entity_id, "message": self.message}


def find_violations(
    artworks: Iterable[Artwork],
    shows: Iterable[Show],
    locations: Iterable[Location],
    artists: Iterable[Artist] = (),
) -> List[InvariantViolation]:
    """
    Check the cross-document invariants over a set of documents.

    Closed shows are archives and are skipped for membership checks.
    """
    artworks = list(artworks)
    open_shows = {s.id: s for s in shows if not s.is_closed}
    locations_by_id = {loc.id: loc for loc in locations}
    artworks_by_id = {a.id: a for a in artworks}
    violations: List[InvariantViolation] = []

    for artwork in artworks:
        state = state_of(artwork)
        if isinstance(state, (Accepted, Shown)) and artwork.artshow_id:
            show = open_shows.get(artwork.artshow_id)
            if show is not None:
                if artwork.id not in show.artwork_ids:
                    violations.append(InvariantViolation(
                        "forward_back", artwork.id,
                        f"missing from show {show.id} artworkIds",
                    ))
                if isinstance(state, Accepted) and artwork.artist_id and artwork.artist_id not in show.artist_ids:
                    violations.append(InvariantViolation(
                        "artist_back_reference", artwork.id,
                        f"artist {artwork.artist_id} missing from show {show.id} artistIds",
                    ))
            location = locations_by_id.get(artwork.location_id)
            if location is not None:
                if artwork.id not in location.artwork_ids:
                    violations.append(InvariantViolation(
                        "forward_back", artwork.id,
                        f"missing from location {location.id} artworkIds",
                    ))
                if isinstance(state, Accepted) and artwork.artist_id and artwork.artist_id not in location.artist_ids:
                    violations.append(InvariantViolation(
                        "artist_back_reference", artwork.id,
                        f"artist {artwork.artist_id} missing from location {location.id} artistIds",
                    ))
        elif artwork.show_status in (ShowStatus.NONE, ShowStatus.REJECTED, ShowStatus.ACCEPTED):
            if artwork.artshow_id or artwork.location_id:
                violations.append(InvariantViolation(
                    "rejection_clears_references", artwork.id,
                    "unassigned artwork still carries show/location references",
                ))

    def _check_member(holder_kind: str, holder_id: str, artwork_id: str, expected_field: str):
        artwork = artworks_by_id.get(artwork_id)
        if artwork is None:
            return
        if artwork.show_status not in (ShowStatus.ACCEPTED, ShowStatus.SHOWN):
            violations.append(InvariantViolation(
                "rejection_clears_references", artwork_id,
                f"{artwork.show_status.value} artwork listed in {holder_kind} {holder_id}",
            ))
        elif getattr(artwork, expected_field) != holder_id:
            violations.append(InvariantViolation(
                "forward_back", artwork_id,
                f"listed in {holder_kind} {holder_id} but references {getattr(artwork, expected_field) or 'nothing'}",
            ))

    show_membership: Dict[str, List[str]] = {}
    for show in open_shows.values():
        for artwork_id in show.artwork_order:
            if artwork_id not in show.artwork_ids:
                violations.append(InvariantViolation(
                    "order_subset_of_membership", show.id,
                    f"artworkOrder entry {artwork_id} is not in artworkIds",
                ))
        if len(set(show.artwork_order)) != len(show.artwork_order):
            violations.append(InvariantViolation(
                "order_subset_of_membership", show.id, "artworkOrder contains duplicates",
            ))
        for artwork_id in show.artwork_ids:
            show_membership.setdefault(artwork_id, []).append(show.id)
            _check_member("show", show.id, artwork_id, "artshow_id")

    location_membership: Dict[str, List[str]] = {}
    for location in locations_by_id.values():
        for artwork_id in location.artwork_ids:
            location_membership.setdefault(artwork_id, []).append(location.id)
            _check_member("location", location.id, artwork_id, "location_id")

    for artwork_id, holders in list(show_membership.items()) + list(location_membership.items()):
        if len(holders) > 1:
            violations.append(InvariantViolation(
                "no_duplicate_membership", artwork_id,
                f"listed in more than one place: {', '.join(sorted(holders))}",
            ))

    for artist in artists:
        if artist.artshow_id and artist.artshow_id in open_shows:
            if artist.id not in open_shows[artist.artshow_id].artist_ids:
                violations.append(InvariantViolation(
                    "artist_back_reference", artist.id,
                    f"artist placed in show {artist.artshow_id} but missing from its artistIds",
                ))

    return violations
