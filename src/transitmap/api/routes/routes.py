"""Route endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...data.registry import RegistryStore
from ...errors import InvalidGeometryError, UnknownRouteError
from ...schemas.transit import (
    GeofenceRequest,
    GeofenceResponse,
    RouteModel,
    RuntimeResponse,
    StopModel,
)
from ...services.geofence import is_on_route
from ...services.runtime import estimate_route_runtime_seconds, format_duration
from ...services.text_matcher import match_by_text
from ..deps import registry_store

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("", response_model=List[RouteModel], status_code=status.HTTP_200_OK)
def list_routes(store: RegistryStore = Depends(registry_store)) -> List[RouteModel]:
    registry = store.snapshot
    return [RouteModel.from_domain(route, len(registry.stops_of_route(route.id))) for route in registry.routes]


@router.get("/search", response_model=List[RouteModel], status_code=status.HTTP_200_OK)
def search_routes(
    q: str = Query(..., min_length=1, description="Text to look for in route names and descriptions"),
    store: RegistryStore = Depends(registry_store),
) -> List[RouteModel]:
    registry = store.snapshot
    return [
        RouteModel.from_domain(registry.get_route(route_id), len(registry.stops_of_route(route_id)))
        for route_id in match_by_text(q, registry.routes)
    ]


@router.get("/{route_id}", response_model=RouteModel, status_code=status.HTTP_200_OK)
def get_route(route_id: str, store: RegistryStore = Depends(registry_store)) -> RouteModel:
    registry = store.snapshot
    try:
        route = registry.get_route(route_id)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return RouteModel.from_domain(route, len(registry.stops_of_route(route_id)), include_path=True)


@router.get("/{route_id}/stops", response_model=List[StopModel], status_code=status.HTTP_200_OK)
def get_route_stops(route_id: str, store: RegistryStore = Depends(registry_store)) -> List[StopModel]:
    registry = store.snapshot
    try:
        stops = registry.stops_of_route(route_id)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    color = registry.color_of(route_id)
    return [StopModel.from_domain(stop, color) for stop in stops]


@router.get("/{route_id}/runtime", response_model=RuntimeResponse, status_code=status.HTTP_200_OK)
def get_route_runtime(route_id: str, store: RegistryStore = Depends(registry_store)) -> RuntimeResponse:
    registry = store.snapshot
    try:
        stops = registry.stops_of_route(route_id)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    seconds = estimate_route_runtime_seconds(stops)
    return RuntimeResponse(route_id=route_id, runtime_seconds=seconds, display=format_duration(seconds))


@router.post("/{route_id}/geofence", response_model=GeofenceResponse, status_code=status.HTTP_200_OK)
def check_geofence(
    route_id: str,
    payload: GeofenceRequest,
    store: RegistryStore = Depends(registry_store),
) -> GeofenceResponse:
    """Tell whether a point lies within the tolerance corridor of a route."""
    try:
        route = store.snapshot.get_route(route_id)
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    tolerance = settings.geofence_tolerance_m if payload.tolerance_m is None else payload.tolerance_m
    try:
        on_route = is_on_route(payload.point.to_domain(), route, tolerance)
    except (InvalidGeometryError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return GeofenceResponse(route_id=route_id, on_route=on_route, tolerance_m=tolerance)
