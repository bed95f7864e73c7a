"""Radius and nearest-neighbour queries over stops."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from ..models.domain import Location, ProximityResult, Stop
from .geospatial import distance, validate_location


def find_nearby(point: Location, radius_m: float, candidates: Iterable[Stop]) -> list[ProximityResult]:
    """Return every candidate within ``radius_m`` of ``point``.

    Results keep the candidates' iteration order. A radius of 0 only keeps stops
    whose coordinates coincide exactly with ``point``.
    """

    if not math.isfinite(radius_m) or radius_m < 0:
        raise ValueError(f"radius_m must be a finite value >= 0, got {radius_m}.")
    validate_location(point)

    results: list[ProximityResult] = []
    for stop in candidates:
        meters = distance(point, stop.position)
        if meters <= radius_m:
            results.append(ProximityResult(entity=stop, distance_m=meters))
    return results


def find_nearest(point: Location, candidates: Iterable[Stop]) -> Optional[ProximityResult]:
    """Return the closest candidate, or None when there are none.

    Ties go to the first candidate in iteration order.
    """

    validate_location(point)
    best: Optional[ProximityResult] = None
    for stop in candidates:
        meters = distance(point, stop.position)
        if best is None or meters < best.distance_m:
            best = ProximityResult(entity=stop, distance_m=meters)
    return best


def route_ids_near(point: Location, radius_m: float, candidates: Iterable[Stop]) -> set[str]:
    return {result.entity.route_id for result in find_nearby(point, radius_m, candidates)}
