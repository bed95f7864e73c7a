"""Domain models for routes, stops and spatial query results."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True, frozen=True)
class Location:
    """A WGS-84 point; created per query and never persisted."""

    lat: float
    lng: float


@dataclass(slots=True, frozen=True)
class Stop:
    """A boarding point belonging to exactly one route."""

    id: str
    route_id: str
    sequence: int
    position: Location
    travel_time_s: Optional[float] = None
    dwell_time_s: Optional[float] = None


@dataclass(slots=True, frozen=True)
class Route:
    """A named path a vehicle follows."""

    id: str
    name: str
    description: str
    path: tuple[Location, ...]
    color: Optional[str] = None
    notes: Optional[str] = None
    properties: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(slots=True, frozen=True)
class ProximityResult:
    entity: Stop
    distance_m: float


@dataclass(slots=True, frozen=True)
class MatchSet:
    """Routes connecting an origin and a destination.

    ``fallback`` is only populated when ``direct`` is empty. When both are empty
    the search produced no connecting route, which is a normal outcome.
    """

    direct: frozenset[str] = frozenset()
    fallback: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.direct and not self.fallback

    def route_ids(self) -> frozenset[str]:
        return self.direct or self.fallback
