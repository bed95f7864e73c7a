"""Search pipeline: geocode both places, match routes, fall back to text."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ...config import settings
from ...data.registry import RouteRegistry
from ...errors import GeocodingMiss
from ...models.domain import MatchSet, ProximityResult
from ..geocoding.nominatim import GeocodedPlace, Geocoder
from ..proximity import find_nearby
from ..text_matcher import match_by_text
from .od_matcher import check_distinct_points, fallback_matches, find_routes_between

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    GEOCODING = "geocoding"
    PROXIMITY_MATCHING = "proximity_matching"
    DIRECT_FOUND = "direct_found"
    DIRECT_EMPTY = "direct_empty"
    FALLBACK_TEXT_SEARCH = "fallback_text_search"
    FALLBACK_FOUND = "fallback_found"
    FALLBACK_EMPTY = "fallback_empty"
    PRESENT = "present"
    NO_RESULTS = "no_results"


@dataclass(slots=True)
class SearchOutcome:
    """Result of one origin/destination search, including the states it went through."""

    origin_term: str
    destination_term: str
    match_set: MatchSet = field(default_factory=MatchSet)
    origin: Optional[GeocodedPlace] = None
    destination: Optional[GeocodedPlace] = None
    trail: list[SearchState] = field(default_factory=lambda: [SearchState.IDLE])
    misses: list[GeocodingMiss] = field(default_factory=list)

    @property
    def state(self) -> SearchState:
        return self.trail[-1]

    @property
    def found(self) -> bool:
        return self.state is SearchState.PRESENT


@dataclass(slots=True)
class PlaceSearchOutcome:
    """Routes serving a single searched place."""

    term: str
    place: Optional[GeocodedPlace]
    route_ids: list[str]
    source: str
    nearby: list[ProximityResult] = field(default_factory=list)


class TripPlanner:
    """Runs the search state machine against the current registry snapshot."""

    def __init__(
        self,
        geocoder: Geocoder,
        registry_provider: Callable[[], RouteRegistry],
        *,
        radius_m: Optional[float] = None,
        epsilon_m: Optional[float] = None,
    ) -> None:
        self.geocoder = geocoder
        self.registry_provider = registry_provider
        self.radius_m = settings.proximity_radius_m if radius_m is None else radius_m
        self.epsilon_m = settings.degenerate_query_epsilon_m if epsilon_m is None else epsilon_m

    async def _resolve(self, term: str, misses: list[GeocodingMiss]) -> Optional[GeocodedPlace]:
        place = await self.geocoder.geocode(term)
        if place is None:
            miss = GeocodingMiss(term)
            logger.info(str(miss))
            misses.append(miss)
        return place

    async def plan(
        self,
        origin_term: str,
        destination_term: str,
        radius_m: Optional[float] = None,
    ) -> SearchOutcome:
        """Find the routes connecting two searched places.

        Raises ``DegenerateQueryError`` when both places resolve to the same point.
        """

        radius = self.radius_m if radius_m is None else radius_m
        outcome = SearchOutcome(origin_term=origin_term, destination_term=destination_term)

        outcome.trail.append(SearchState.GEOCODING)
        outcome.origin = await self._resolve(origin_term, outcome.misses)
        outcome.destination = await self._resolve(destination_term, outcome.misses)

        # one snapshot for the whole matching phase
        registry = self.registry_provider()
        origin = outcome.origin.location if outcome.origin else None
        destination = outcome.destination.location if outcome.destination else None

        if origin is not None and destination is not None:
            check_distinct_points(origin, destination, self.epsilon_m)
            outcome.trail.append(SearchState.PROXIMITY_MATCHING)
            match_set = find_routes_between(
                origin,
                destination,
                radius,
                registry,
                origin_term=origin_term,
                destination_term=destination_term,
                epsilon_m=self.epsilon_m,
            )
            if match_set.direct:
                outcome.match_set = match_set
                outcome.trail.extend([SearchState.DIRECT_FOUND, SearchState.PRESENT])
                return outcome
            outcome.trail.extend([SearchState.DIRECT_EMPTY, SearchState.FALLBACK_TEXT_SEARCH])
        else:
            outcome.trail.append(SearchState.FALLBACK_TEXT_SEARCH)
            match_set = MatchSet(
                fallback=fallback_matches(
                    registry,
                    radius,
                    origin=origin,
                    destination=destination,
                    origin_term=origin_term,
                    destination_term=destination_term,
                )
            )

        outcome.match_set = match_set
        if match_set.fallback:
            outcome.trail.extend([SearchState.FALLBACK_FOUND, SearchState.PRESENT])
        else:
            outcome.trail.extend([SearchState.FALLBACK_EMPTY, SearchState.NO_RESULTS])
        return outcome

    async def search_place(self, term: str, radius_m: Optional[float] = None) -> PlaceSearchOutcome:
        """Routes with a stop near a searched place, or routes whose text mentions it."""

        radius = self.radius_m if radius_m is None else radius_m
        place = await self.geocoder.geocode(term)
        registry = self.registry_provider()

        if place is not None:
            nearby = find_nearby(place.location, radius, registry.stops)
            route_ids = list(dict.fromkeys(result.entity.route_id for result in nearby))
            if route_ids:
                return PlaceSearchOutcome(term=term, place=place, route_ids=route_ids, source="proximity", nearby=nearby)
            logger.info(f"No stops within {radius:.0f} m of '{term}'; falling back to text search")

        route_ids = match_by_text(term, registry.routes)
        return PlaceSearchOutcome(
            term=term,
            place=place,
            route_ids=route_ids,
            source="text" if route_ids else "none",
        )


class SearchSession:
    """One user's search box.

    Every search takes a new generation number; a search that finishes after a
    newer one has started returns None and leaves ``latest`` untouched.
    """

    def __init__(self, planner: TripPlanner) -> None:
        self.planner = planner
        self._generation = 0
        self.latest: Optional[SearchOutcome] = None

    @property
    def generation(self) -> int:
        return self._generation

    async def search(
        self,
        origin_term: str,
        destination_term: str,
        radius_m: Optional[float] = None,
    ) -> Optional[SearchOutcome]:
        self._generation += 1
        generation = self._generation
        outcome = await self.planner.plan(origin_term, destination_term, radius_m)
        if generation != self._generation:
            logger.info(
                f"Discarding superseded search #{generation} "
                f"('{origin_term}' -> '{destination_term}'); current is #{self._generation}"
            )
            return None
        self.latest = outcome
        return outcome
