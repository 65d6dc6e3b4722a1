"""
Show endpoints: curation order, the cached curated listing, closing and
invariant audits.
"""

from typing import List

from fastapi import APIRouter, Depends

from artspace.api.deps import get_assignment_service, get_curation_service
from artspace.core.logging import get_logger
from artspace.schemas.assignment import AuditReport, ReorderRequest, ShowClosureResult
from artspace.schemas.entities import Artwork, Show
from artspace.services.assignment_service import AssignmentService
from artspace.services.cache_service import invalidate_curation_cache
from artspace.services.curation_service import CurationService

logger = get_logger(__name__)
router = APIRouter(prefix="/shows", tags=["Shows"])


@router.put("/{show_id}/order", response_model=Show)
async def reorder_endpoint(
    show_id: str,
    payload: ReorderRequest,
    service: CurationService = Depends(get_curation_service),
):
    """
    Replace the show's curation order.
    Ids must be members of the show; members left out are appended.
    """
    show = await service.reorder(show_id, payload.artwork_order)
    await invalidate_curation_cache()
    return show


@router.get("/{show_id}/curation", response_model=List[Artwork])
async def curated_artworks_endpoint(
    show_id: str,
    service: CurationService = Depends(get_curation_service),
):
    """
    The show's artworks in curation order.
    Results are cached in Redis; any assignment or reorder invalidates them.
    """
    return await service.curated_artworks(show_id)


@router.post("/{show_id}/close", response_model=ShowClosureResult)
async def close_show_endpoint(
    show_id: str,
    service: AssignmentService = Depends(get_assignment_service),
):
    result = await service.close_show(show_id)
    await invalidate_curation_cache()
    return result


@router.get("/{show_id}/audit", response_model=AuditReport)
async def audit_show_endpoint(
    show_id: str,
    service: AssignmentService = Depends(get_assignment_service),
):
    """Check the show's cross-document invariants without changing anything."""
    violations = await service.audit_show(show_id)
    if violations:
        logger.warning("show_audit_violations", show_id=show_id, count=len(violations))
    return AuditReport.from_violations(show_id, violations)
