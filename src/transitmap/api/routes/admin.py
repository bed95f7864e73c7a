"""Admin endpoints for adding routes and stops and reloading data."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...data.registry import RegistryStore
from ...errors import AdminValidationError, UnknownRouteError
from ...persistence.filesystem import RouteFolderStorage
from ...schemas.admin import (
    ExportResponse,
    ReloadResponse,
    SubmitRouteRequest,
    SubmitRouteResponse,
    SubmitStopRequest,
    SubmitStopResponse,
)
from ...schemas.transit import RouteModel, StopModel
from ...services.admin.editor import RegistryEditor, SubmitRoute, SubmitStop
from ...services.export.geojson import export_route_collections, save_route_export
from ..deps import registry_store

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/stops", response_model=SubmitStopResponse, status_code=status.HTTP_201_CREATED)
def submit_stop(payload: SubmitStopRequest, store: RegistryStore = Depends(registry_store)) -> SubmitStopResponse:
    """Add a stop after checking it lies on its route's path."""
    editor = RegistryEditor(store)
    try:
        committed = editor.submit_stop(
            SubmitStop(
                route_id=payload.route_id,
                position=payload.position.to_domain(),
                sequence=payload.sequence,
                stop_id=payload.stop_id,
                tolerance_m=payload.tolerance_m,
            )
        )
    except AdminValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    color = store.snapshot.color_of(committed.stop.route_id)
    return SubmitStopResponse(stop=StopModel.from_domain(committed.stop, color), offset_m=committed.offset_m)


@router.post("/routes", response_model=SubmitRouteResponse, status_code=status.HTTP_201_CREATED)
def submit_route(payload: SubmitRouteRequest, store: RegistryStore = Depends(registry_store)) -> SubmitRouteResponse:
    editor = RegistryEditor(store)
    try:
        committed = editor.submit_route(
            SubmitRoute(
                name=payload.name,
                description=payload.description,
                path=[point.to_domain() for point in payload.path],
                route_id=payload.route_id,
            )
        )
    except AdminValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return SubmitRouteResponse(route=RouteModel.from_domain(committed.route, include_path=True))


@router.post("/reload", response_model=ReloadResponse, status_code=status.HTTP_200_OK)
def reload_registry(store: RegistryStore = Depends(registry_store)) -> ReloadResponse:
    """Re-read every route folder and swap in the new snapshot."""
    try:
        registry = store.reload()
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error reloading route data: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to reload route data: {str(exc)}",
        ) from exc
    return ReloadResponse(routes=len(registry.routes), stops=len(registry.stops))


@router.post("/export/{route_id}", response_model=ExportResponse, status_code=status.HTTP_200_OK)
def export_route(route_id: str, store: RegistryStore = Depends(registry_store)) -> ExportResponse:
    """Write a route and its stops as GeoJSON files."""
    registry = store.snapshot
    try:
        routes_fc, stops_fc = export_route_collections(registry, route_id)
        run_dir = save_route_export(registry, route_id, RouteFolderStorage())
    except UnknownRouteError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ExportResponse(
        route_id=route_id,
        directory=str(run_dir),
        routes_geojson=routes_fc,
        stops_geojson=stops_fc,
    )
