"""
Artwork endpoints: lifecycle and single-artwork assignment changes.

Every change that can touch show membership or order invalidates the
curated listing cache.
"""

from fastapi import APIRouter, Depends, status

from artspace.api.deps import get_assignment_service
from artspace.schemas.assignment import (
    AssignmentRequest,
    AssignmentResult,
    ArtworkCreate,
    DeletionResult,
    MarkShownRequest,
)
from artspace.schemas.entities import Artwork
from artspace.services.assignment_service import AssignmentService
from artspace.services.cache_service import invalidate_curation_cache

router = APIRouter(prefix="/artworks", tags=["Artworks"])


@router.post("/", response_model=Artwork, status_code=status.HTTP_201_CREATED)
async def create_artwork_endpoint(
    payload: ArtworkCreate,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Create an unassigned artwork for an artist."""
    fields = payload.model_dump(exclude={"artist_id"}, exclude_none=True)
    return await service.create_artwork(payload.artist_id, fields)


@router.delete("/{artwork_id}", response_model=DeletionResult)
async def delete_artwork_endpoint(
    artwork_id: str,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Delete an artwork after removing it from any show and location."""
    result = await service.delete_artwork(artwork_id)
    await invalidate_curation_cache()
    return result


@router.put("/{artwork_id}/assignment", response_model=AssignmentResult)
async def assign_artwork_endpoint(
    artwork_id: str,
    payload: AssignmentRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    """
    Accept an artwork into a show/location.
    Idempotent: repeating the request leaves a single membership entry.
    """
    result = await service.assign_artwork(artwork_id, payload.show_id, payload.location_id)
    await invalidate_curation_cache()
    return result


@router.post("/{artwork_id}/reassignment", response_model=AssignmentResult)
async def reassign_artwork_endpoint(
    artwork_id: str,
    payload: AssignmentRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    result = await service.reassign_artwork(artwork_id, payload.show_id, payload.location_id)
    await invalidate_curation_cache()
    return result


@router.delete("/{artwork_id}/assignment", response_model=AssignmentResult)
async def reject_artwork_endpoint(
    artwork_id: str,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Reject an artwork and clear its show/location references."""
    result = await service.reject_artwork(artwork_id)
    await invalidate_curation_cache()
    return result


@router.post("/{artwork_id}/shown", response_model=AssignmentResult)
async def mark_shown_endpoint(
    artwork_id: str,
    payload: MarkShownRequest,
    service: AssignmentService = Depends(get_assignment_service),
):
    result = await service.mark_shown(artwork_id, payload.show_id)
    await invalidate_curation_cache()
    return result
