"""
Pydantic schemas for assignment requests and engine results.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from artspace.core.exceptions import PartialApplicationWarning
from artspace.schemas.entities import Artist, Artwork, Show

if TYPE_CHECKING:
    from artspace.services.relationships import InvariantViolation


class AssignmentRequest(BaseModel):
    show_id: str = Field(..., min_length=1, max_length=128)
    location_id: str = Field("", max_length=128)


class MarkShownRequest(BaseModel):
    show_id: str = Field(..., min_length=1, max_length=128)


class ArtistAcceptanceRequest(BaseModel):
    show_id: str = Field(..., min_length=1, max_length=128)
    location_id: str = Field("", max_length=128)
    selected_artwork_ids: List[str] = Field(default_factory=list)


class ReorderRequest(BaseModel):
    artwork_order: List[str]


class ArtworkCreate(BaseModel):
    artist_id: str = Field(..., min_length=1, max_length=128)
    title: str = Field(..., min_length=1, max_length=255)
    medium: str = Field("", max_length=255)
    description: str = Field("", max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    images: List[str] = Field(default_factory=list)


class AssignmentResult(BaseModel):
    artwork: Artwork
    warnings: List[PartialApplicationWarning] = Field(default_factory=list)


class ArtistAcceptanceResult(BaseModel):
    artist: Artist
    accepted: List[Artwork] = Field(default_factory=list)
    rejected: List[Artwork] = Field(default_factory=list)
    notified: bool = False
    warnings: List[PartialApplicationWarning] = Field(default_factory=list)


class ArtistRemovalResult(BaseModel):
    artist: Artist
    released: List[Artwork] = Field(default_factory=list)
    warnings: List[PartialApplicationWarning] = Field(default_factory=list)


class DeletionResult(BaseModel):
    artwork_id: str
    warnings: List[PartialApplicationWarning] = Field(default_factory=list)


class ShowClosureResult(BaseModel):
    show: Show
    shown_artworks: List[Artwork] = Field(default_factory=list)
    artist_ids: List[str] = Field(default_factory=list)
    warnings: List[PartialApplicationWarning] = Field(default_factory=list)


class AuditReport(BaseModel):
    show_id: str
    consistent: bool
    violations: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_violations(cls, show_id: str, violations: List["InvariantViolation"]) -> "AuditReport":
        return cls(
            show_id=show_id,
            consistent=not violations,
            violations=[v.to_dict() for v in violations],
        )
