"""Corridor checks that decide whether a point lies on a route's path."""

from __future__ import annotations

import functools
import math
from typing import Sequence

from pyproj import Transformer
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from ..errors import InvalidGeometryError
from ..models.domain import Location, Route
from .geospatial import validate_location

# Points closer than this to the projected path count as lying on it, so that
# vertices and segment points still pass with a zero tolerance.
ON_PATH_EPSILON_M = 0.5


def utm_epsg_for(location: Location) -> int:
    """EPSG code of the WGS-84 UTM zone containing ``location``."""

    zone = min(int((location.lng + 180) / 6) + 1, 60)
    return (32600 if location.lat >= 0 else 32700) + zone


@functools.lru_cache(maxsize=16)
def _utm_transformer(epsg: int) -> Transformer:
    return Transformer.from_crs("EPSG:4326", f"EPSG:{epsg}", always_xy=True)


def validate_path(path: Sequence[Location]) -> tuple[Location, ...]:
    """Return the path as a tuple or raise if it cannot describe a line."""

    if len(path) < 2:
        raise InvalidGeometryError(f"A route path needs at least two points, got {len(path)}.")
    for location in path:
        validate_location(location)
    if len(set(path)) < 2:
        raise InvalidGeometryError("A route path needs at least two distinct points.")
    return tuple(path)


class RouteCorridor:
    """Buffer polygon of half-width ``tolerance_m`` around a route path.

    Geometry is built in the UTM zone of the path centroid so buffering happens in
    metres; the corridor is the union of one buffer per segment.
    """

    def __init__(self, path: Sequence[Location], tolerance_m: float) -> None:
        if not math.isfinite(tolerance_m) or tolerance_m < 0:
            raise ValueError(f"tolerance_m must be a finite value >= 0, got {tolerance_m}.")
        self.path = validate_path(path)
        self.tolerance_m = tolerance_m

        centroid = Location(
            lat=sum(loc.lat for loc in self.path) / len(self.path),
            lng=sum(loc.lng for loc in self.path) / len(self.path),
        )
        self._transformer = _utm_transformer(utm_epsg_for(centroid))
        projected = [self._project(loc) for loc in self.path]
        self.line = LineString(projected)

        segments = [
            LineString([start, end])
            for start, end in zip(projected, projected[1:])
            if start != end
        ]
        self.polygon: BaseGeometry = unary_union([segment.buffer(tolerance_m) for segment in segments])

    @classmethod
    def for_route(cls, route: Route, tolerance_m: float) -> "RouteCorridor":
        return cls(route.path, tolerance_m)

    def _project(self, location: Location) -> tuple[float, float]:
        x, y = self._transformer.transform(location.lng, location.lat)
        return (x, y)

    def offset_m(self, location: Location) -> float:
        """Planar distance in metres from ``location`` to the path."""

        validate_location(location)
        return self.line.distance(Point(self._project(location)))

    def contains(self, location: Location) -> bool:
        validate_location(location)
        point = Point(self._project(location))
        if not self.polygon.is_empty and self.polygon.covers(point):
            return True
        return self.line.distance(point) <= ON_PATH_EPSILON_M


def is_on_route(point: Location, route: Route, tolerance_m: float) -> bool:
    """Return True when ``point`` lies inside the tolerance corridor of ``route``."""

    return RouteCorridor.for_route(route, tolerance_m).contains(point)
