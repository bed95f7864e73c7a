"""Route, stop and proximity response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Location, ProximityResult, Route, Stop


class LocationModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Location:
        return Location(lat=self.lat, lng=self.lng)

    @classmethod
    def from_domain(cls, location: Location) -> "LocationModel":
        return cls(lat=location.lat, lng=location.lng)


class StopModel(BaseModel):
    id: str
    route_id: str
    sequence: int
    position: LocationModel
    color: Optional[str] = None

    @classmethod
    def from_domain(cls, stop: Stop, color: Optional[str] = None) -> "StopModel":
        return cls(
            id=stop.id,
            route_id=stop.route_id,
            sequence=stop.sequence,
            position=LocationModel.from_domain(stop.position),
            color=color,
        )


class RouteModel(BaseModel):
    id: str
    name: str
    description: str
    color: Optional[str]
    notes: Optional[str] = None
    stop_count: int = 0
    path: Optional[List[LocationModel]] = None

    @classmethod
    def from_domain(cls, route: Route, stop_count: int = 0, include_path: bool = False) -> "RouteModel":
        return cls(
            id=route.id,
            name=route.name,
            description=route.description,
            color=route.color,
            notes=route.notes,
            stop_count=stop_count,
            path=[LocationModel.from_domain(loc) for loc in route.path] if include_path else None,
        )


class ProximityResultModel(BaseModel):
    stop: StopModel
    distance_m: float
    walking_minutes: int

    @classmethod
    def from_domain(cls, result: ProximityResult, color: Optional[str], walking_minutes: int) -> "ProximityResultModel":
        return cls(
            stop=StopModel.from_domain(result.entity, color),
            distance_m=result.distance_m,
            walking_minutes=walking_minutes,
        )


class NearbyResponse(BaseModel):
    center: LocationModel
    radius_m: float
    results: List[ProximityResultModel]


class NearestResponse(BaseModel):
    center: LocationModel
    result: Optional[ProximityResultModel] = None
    within_walking_range: bool = False


class RuntimeResponse(BaseModel):
    route_id: str
    runtime_seconds: Optional[int]
    display: str


class GeofenceRequest(BaseModel):
    point: LocationModel
    tolerance_m: Optional[float] = Field(default=None, ge=0)


class GeofenceResponse(BaseModel):
    route_id: str
    on_route: bool
    tolerance_m: float
