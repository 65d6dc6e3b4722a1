"""
Artist endpoints: batch acceptance into a show and removal from it.
"""

from fastapi import APIRouter, Depends

from artspace.api.deps import get_assignment_service
from artspace.schemas.assignment import (
    ArtistAcceptanceRequest,
    ArtistAcceptanceResult,
    ArtistRemovalResult,
)
from artspace.services.assignment_service import AssignmentService
from artspace.services.cache_service import invalidate_curation_cache

router = APIRouter(prefix="/artists", tags=["Artists"])


@router.post("/{artist_id}/acceptance", response_model=ArtistAcceptanceResult)
async def accept_artist_endpoint(
    artist_id: str,
    payload: ArtistAcceptanceRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    """
    Accept an artist into a show with a selection of their artworks.
    Unselected artworks are rejected; the artist is notified by mail.
    """
    result = await service.accept_artist_into_show(
        artist_id,
        payload.show_id,
        payload.location_id,
        payload.selected_artwork_ids,
    )
    await invalidate_curation_cache()
    return result


@router.delete("/{artist_id}/acceptance", response_model=ArtistRemovalResult)
async def remove_artist_endpoint(
    artist_id: str,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Remove an artist (and all their artworks) from their current show."""
    result = await service.remove_artist_from_show(artist_id)
    await invalidate_curation_cache()
    return result
