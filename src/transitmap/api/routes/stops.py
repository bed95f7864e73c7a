"""Stop proximity endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...data.registry import RegistryStore
from ...errors import InvalidGeometryError, UnknownRouteError
from ...models.domain import Location
from ...schemas.transit import LocationModel, NearbyResponse, NearestResponse, ProximityResultModel
from ...services.proximity import find_nearby, find_nearest
from ...services.runtime import walking_minutes
from ..deps import registry_store

router = APIRouter(prefix="/stops", tags=["stops"])


@router.get("/nearby", response_model=NearbyResponse, status_code=status.HTTP_200_OK)
def nearby_stops(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_m: Optional[float] = Query(default=None, ge=0),
    route_id: Optional[str] = Query(default=None, description="Only consider stops of this route"),
    store: RegistryStore = Depends(registry_store),
) -> NearbyResponse:
    registry = store.snapshot
    radius = settings.proximity_radius_m if radius_m is None else radius_m
    point = Location(lat=lat, lng=lng)
    try:
        candidates = registry.stops_of_route(route_id) if route_id else registry.stops
        results = find_nearby(point, radius, candidates)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (InvalidGeometryError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return NearbyResponse(
        center=LocationModel.from_domain(point),
        radius_m=radius,
        results=[
            ProximityResultModel.from_domain(
                result, registry.color_of(result.entity.route_id), walking_minutes(result.distance_m)
            )
            for result in results
        ],
    )


@router.get("/nearest", response_model=NearestResponse, status_code=status.HTTP_200_OK)
def nearest_stop(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    route_id: Optional[str] = Query(default=None, description="Only consider stops of this route"),
    store: RegistryStore = Depends(registry_store),
) -> NearestResponse:
    registry = store.snapshot
    point = Location(lat=lat, lng=lng)
    try:
        candidates = registry.stops_of_route(route_id) if route_id else registry.stops
        result = find_nearest(point, candidates)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidGeometryError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if result is None:
        return NearestResponse(center=LocationModel.from_domain(point))
    return NearestResponse(
        center=LocationModel.from_domain(point),
        result=ProximityResultModel.from_domain(
            result, registry.color_of(result.entity.route_id), walking_minutes(result.distance_m)
        ),
        within_walking_range=result.distance_m <= settings.nearest_display_radius_m,
    )
