"""
Typed views over the schemaless entity documents.

Documents use camelCase keys; the models expose snake_case attributes and
serialize back by alias. Missing or null arrays read as empty lists and
missing references as "" so callers never special-case absent fields.
Unknown keys (title, images, price...) are preserved untouched.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class ShowStatus(str, Enum):
    NONE = "none"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SHOWN = "shown"


class DocumentModel(BaseModel):
    id: str

    model_config = {
        "populate_by_name": True,
        "extra": "allow",
    }

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _empty_string(value: Any) -> Any:
    return "" if value is None else value


def _empty_list(value: Any) -> Any:
    return [] if value is None else value


class Artwork(DocumentModel):
    artist_id: str = Field("", alias="artistId")
    artshow_id: str = Field("", alias="artshowId")
    location_id: str = Field("", alias="locationId")
    show_status: ShowStatus = Field(ShowStatus.NONE, alias="showStatus")
    been_in_shows: List[str] = Field(default_factory=list, alias="beenInShows")
    sold: bool = False
    pending_sale: bool = Field(False, alias="pendingSale")

    @field_validator("artist_id", "artshow_id", "location_id", mode="before")
    @classmethod
    def _references(cls, value: Any) -> Any:
        return _empty_string(value)

    @field_validator("show_status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Any:
        return value or ShowStatus.NONE

    @field_validator("been_in_shows", mode="before")
    @classmethod
    def _history(cls, value: Any) -> Any:
        return _empty_list(value)

    @field_validator("sold", "pending_sale", mode="before")
    @classmethod
    def _flags(cls, value: Any) -> Any:
        return bool(value)


class Show(DocumentModel):
    name: str = ""
    status: str = "active"
    artist_ids: List[str] = Field(default_factory=list, alias="artistIds")
    artwork_ids: List[str] = Field(default_factory=list, alias="artworkIds")
    artwork_order: List[str] = Field(default_factory=list, alias="artworkOrder")
    shown_artist_ids: List[str] = Field(default_factory=list, alias="shownArtistIds")
    shown_artwork_ids: List[str] = Field(default_factory=list, alias="shownArtworkIds")

    @field_validator(
        "artist_ids",
        "artwork_ids",
        "artwork_order",
        "shown_artist_ids",
        "shown_artwork_ids",
        mode="before",
    )
    @classmethod
    def _arrays(cls, value: Any) -> Any:
        return _empty_list(value)

    @field_validator("name", "status", mode="before")
    @classmethod
    def _strings(cls, value: Any) -> Any:
        return _empty_string(value)

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"


class Location(DocumentModel):
    name: str = ""
    artist_ids: List[str] = Field(default_factory=list, alias="artistIds")
    artwork_ids: List[str] = Field(default_factory=list, alias="artworkIds")
    artists_that_have_shown: List[str] = Field(default_factory=list, alias="artistsThatHaveShown")
    artworks_that_have_hung_here: List[str] = Field(default_factory=list, alias="artworksThatHaveHungHere")

    @field_validator(
        "artist_ids",
        "artwork_ids",
        "artists_that_have_shown",
        "artworks_that_have_hung_here",
        mode="before",
    )
    @classmethod
    def _arrays(cls, value: Any) -> Any:
        return _empty_list(value)


class Artist(DocumentModel):
    name: str = ""
    email: str = ""
    role: str = "on-boarding"
    status: Optional[str] = None
    artshow_id: str = Field("", alias="artshowId")
    artworks: List[str] = Field(default_factory=list)
    been_in_shows: List[str] = Field(default_factory=list, alias="beenInShows")

    @field_validator("artshow_id", "name", "email", "role", mode="before")
    @classmethod
    def _strings(cls, value: Any) -> Any:
        return _empty_string(value)

    @field_validator("artworks", "been_in_shows", mode="before")
    @classmethod
    def _arrays(cls, value: Any) -> Any:
        return _empty_list(value)
