"""Origin/destination and place search schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import MatchSet
from .transit import LocationModel


class MatchSetModel(BaseModel):
    direct: List[str]
    fallback: List[str]
    found: bool
    message: Optional[str] = None

    @classmethod
    def from_domain(cls, match_set: MatchSet) -> "MatchSetModel":
        return cls(
            direct=sorted(match_set.direct),
            fallback=sorted(match_set.fallback),
            found=not match_set.is_empty,
            message="No connecting route found." if match_set.is_empty else None,
        )


class SearchBetweenRequest(BaseModel):
    origin: LocationModel
    destination: LocationModel
    radius_m: Optional[float] = Field(default=None, ge=0)
    origin_term: Optional[str] = Field(default=None, description="Text used for the fallback search near the origin.")
    destination_term: Optional[str] = Field(default=None, description="Text used for the fallback search near the destination.")


class TripSearchRequest(BaseModel):
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    radius_m: Optional[float] = Field(default=None, ge=0)
    session_id: Optional[str] = Field(
        default=None,
        description="Client search-box id; a newer search from the same id supersedes older ones.",
    )


class GeocodedPlaceModel(BaseModel):
    term: str
    location: Optional[LocationModel] = None
    display_name: Optional[str] = None


class TripSearchResponse(BaseModel):
    state: str
    trail: List[str]
    origin: GeocodedPlaceModel
    destination: GeocodedPlaceModel
    matches: MatchSetModel
    geocoding_misses: List[str]


class PlaceSearchResponse(BaseModel):
    term: str
    place: Optional[GeocodedPlaceModel] = None
    source: str
    route_ids: List[str]
