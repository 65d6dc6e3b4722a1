from artspace.schemas.entities import Artist, Artwork, Location, Show, ShowStatus
from artspace.schemas.assignment import (
    ArtistAcceptanceRequest,
    ArtistAcceptanceResult,
    ArtistRemovalResult,
    ArtworkCreate,
    AssignmentRequest,
    AssignmentResult,
    AuditReport,
    DeletionResult,
    MarkShownRequest,
    ReorderRequest,
    ShowClosureResult,
)

__all__ = [
    "Artist", "Artwork", "Location", "Show", "ShowStatus",
    "ArtistAcceptanceRequest", "ArtistAcceptanceResult", "ArtistRemovalResult",
    "ArtworkCreate", "AssignmentRequest", "AssignmentResult", "AuditReport",
    "DeletionResult", "MarkShownRequest", "ReorderRequest", "ShowClosureResult",
]
