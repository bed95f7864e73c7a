"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..errors import InvalidGeometryError
from ..models.domain import Location

EARTH_RADIUS_M = 6_371_000.0


def validate_location(location: Location) -> Location:
    """Return ``location`` unchanged or raise if it cannot be compared."""

    lat, lng = location.lat, location.lng
    if not (isinstance(lat, (int, float)) and isinstance(lng, (int, float))):
        raise InvalidGeometryError(f"Coordinates must be numbers, got ({lat!r}, {lng!r}).")
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidGeometryError(f"Coordinates must be finite, got ({lat}, {lng}).")
    if not -90.0 <= lat <= 90.0:
        raise InvalidGeometryError(f"Latitude {lat} is outside [-90, 90].")
    if not -180.0 <= lng <= 180.0:
        raise InvalidGeometryError(f"Longitude {lng} is outside [-180, 180].")
    return location


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in metres between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push ``a`` a hair above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance(a: Location, b: Location) -> float:
    """Great-circle distance between two locations in metres.

    Raises ``InvalidGeometryError`` when either point is malformed; callers must
    read that as "cannot compare", never as "infinitely far".
    """

    validate_location(a)
    validate_location(b)
    return haversine_m(a.lat, a.lng, b.lat, b.lng)
