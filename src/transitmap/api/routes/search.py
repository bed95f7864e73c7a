"""Origin/destination and place search endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...data.registry import RegistryStore
from ...errors import DegenerateQueryError, InvalidGeometryError
from ...schemas.search import (
    GeocodedPlaceModel,
    MatchSetModel,
    PlaceSearchResponse,
    SearchBetweenRequest,
    TripSearchRequest,
    TripSearchResponse,
)
from ...schemas.transit import LocationModel
from ...services.geocoding.nominatim import GeocodedPlace
from ...services.matching.od_matcher import find_routes_between
from ...services.matching.planner import TripPlanner
from ..deps import registry_store, search_session, trip_planner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def _place_model(term: str, place: Optional[GeocodedPlace]) -> GeocodedPlaceModel:
    if place is None:
        return GeocodedPlaceModel(term=term)
    return GeocodedPlaceModel(
        term=term,
        location=LocationModel.from_domain(place.location),
        display_name=place.display_name,
    )


@router.post("/between", response_model=MatchSetModel, status_code=status.HTTP_200_OK)
def search_between(payload: SearchBetweenRequest, store: RegistryStore = Depends(registry_store)) -> MatchSetModel:
    """Routes serving both coordinates, with the text fallback when none do."""
    radius = settings.proximity_radius_m if payload.radius_m is None else payload.radius_m
    try:
        match_set = find_routes_between(
            payload.origin.to_domain(),
            payload.destination.to_domain(),
            radius,
            store.snapshot,
            origin_term=payload.origin_term,
            destination_term=payload.destination_term,
        )
    except DegenerateQueryError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except (InvalidGeometryError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MatchSetModel.from_domain(match_set)


@router.post("/trip", response_model=TripSearchResponse, status_code=status.HTTP_200_OK)
async def search_trip(payload: TripSearchRequest, planner: TripPlanner = Depends(trip_planner)) -> TripSearchResponse:
    """Geocode two place names and find the routes connecting them."""
    try:
        if payload.session_id:
            outcome = await search_session(payload.session_id, planner).search(
                payload.origin, payload.destination, payload.radius_m
            )
            if outcome is None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="A newer search from this session replaced this one.",
                )
        else:
            outcome = await planner.plan(payload.origin, payload.destination, payload.radius_m)
    except DegenerateQueryError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logging.exception(f"Error searching trip: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to search routes: {str(exc)}",
        ) from exc

    return TripSearchResponse(
        state=outcome.state.value,
        trail=[state.value for state in outcome.trail],
        origin=_place_model(payload.origin, outcome.origin),
        destination=_place_model(payload.destination, outcome.destination),
        matches=MatchSetModel.from_domain(outcome.match_set),
        geocoding_misses=[miss.term for miss in outcome.misses],
    )


@router.get("/place", response_model=PlaceSearchResponse, status_code=status.HTTP_200_OK)
async def search_place(
    q: str = Query(..., min_length=1, description="Place name or route text"),
    radius_m: Optional[float] = Query(default=None, ge=0),
    planner: TripPlanner = Depends(trip_planner),
) -> PlaceSearchResponse:
    """Routes near a single searched place, or routes whose text mentions it."""
    outcome = await planner.search_place(q.strip(), radius_m)
    return PlaceSearchResponse(
        term=outcome.term,
        place=_place_model(outcome.term, outcome.place) if outcome.place else None,
        source=outcome.source,
        route_ids=outcome.route_ids,
    )
