"""Admin request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .transit import LocationModel, RouteModel, StopModel


class SubmitStopRequest(BaseModel):
    route_id: str
    position: LocationModel
    sequence: Optional[int] = Field(default=None, ge=0)
    stop_id: Optional[str] = None
    tolerance_m: Optional[float] = Field(default=None, ge=0)


class SubmitStopResponse(BaseModel):
    stop: StopModel
    offset_m: float


class SubmitRouteRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    path: List[LocationModel]
    route_id: Optional[str] = None


class SubmitRouteResponse(BaseModel):
    route: RouteModel


class ReloadResponse(BaseModel):
    routes: int
    stops: int


class ExportResponse(BaseModel):
    route_id: str
    directory: str
    routes_geojson: dict
    stops_geojson: dict
