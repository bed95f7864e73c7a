"""Origin/destination matching of transit routes."""

from __future__ import annotations

import logging
from typing import Optional

from ...config import settings
from ...data.registry import RouteRegistry
from ...errors import DegenerateQueryError
from ...models.domain import Location, MatchSet
from ..geospatial import distance
from ..proximity import route_ids_near
from ..text_matcher import match_by_text

logger = logging.getLogger(__name__)


def check_distinct_points(
    origin: Location,
    destination: Location,
    epsilon_m: Optional[float] = None,
) -> float:
    """Return the origin/destination separation or refuse a same-place query."""

    epsilon = settings.degenerate_query_epsilon_m if epsilon_m is None else epsilon_m
    separation = distance(origin, destination)
    if separation < epsilon:
        raise DegenerateQueryError(separation, epsilon)
    return separation


def _text_matches_served_near(
    registry: RouteRegistry,
    term: Optional[str],
    other: Optional[Location],
    radius_m: float,
) -> set[str]:
    """Routes matching ``term`` that also stop within ``radius_m`` of ``other``.

    When ``other`` could not be resolved the text matches are returned as-is.
    """

    if not term:
        return set()
    matches = set(match_by_text(term, registry.routes))
    if not matches or other is None:
        return matches
    candidates = [stop for stop in registry.stops if stop.route_id in matches]
    return route_ids_near(other, radius_m, candidates)


def fallback_matches(
    registry: RouteRegistry,
    radius_m: float,
    *,
    origin: Optional[Location],
    destination: Optional[Location],
    origin_term: Optional[str],
    destination_term: Optional[str],
) -> frozenset[str]:
    """Text fallback: each term's matches filtered against the opposite point."""

    from_origin_term = _text_matches_served_near(registry, origin_term, destination, radius_m)
    from_destination_term = _text_matches_served_near(registry, destination_term, origin, radius_m)
    return frozenset(from_origin_term | from_destination_term)


def find_routes_between(
    origin: Location,
    destination: Location,
    radius_m: float,
    registry: RouteRegistry,
    *,
    origin_term: Optional[str] = None,
    destination_term: Optional[str] = None,
    epsilon_m: Optional[float] = None,
) -> MatchSet:
    """Resolve which routes connect ``origin`` to ``destination``.

    Routes with a stop within ``radius_m`` of both points are direct matches.
    Only when there are none do the search terms feed the text fallback. An
    empty MatchSet means no connecting route was found.
    """

    check_distinct_points(origin, destination, epsilon_m)

    near_origin = route_ids_near(origin, radius_m, registry.stops)
    near_destination = route_ids_near(destination, radius_m, registry.stops)
    direct = near_origin & near_destination
    if direct:
        logger.debug(f"Direct match: {sorted(direct)}")
        return MatchSet(direct=frozenset(direct))

    fallback = fallback_matches(
        registry,
        radius_m,
        origin=origin,
        destination=destination,
        origin_term=origin_term,
        destination_term=destination_term,
    )
    logger.debug(f"No direct route; text fallback matched {sorted(fallback)}")
    return MatchSet(fallback=fallback)
