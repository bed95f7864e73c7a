"""Route/stop association registry and the store that swaps its snapshots."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from ..config import DEFAULT_ROUTE_PALETTE
from ..errors import UnknownRouteError, UnknownStopError
from ..models.domain import Route, Stop

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RouteRegistry:
    """Immutable snapshot of every loaded route and stop.

    Routes are coloured from ``palette`` by load order, so the n-th route always
    gets ``palette[n % len(palette)]``. Colours repeat once the palette runs out.
    Stops keep their insertion order, which is the iteration order every spatial
    query sees.
    """

    def __init__(
        self,
        routes: Iterable[Route] = (),
        stops: Iterable[Stop] = (),
        palette: Sequence[str] = DEFAULT_ROUTE_PALETTE,
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one colour.")
        self.palette = tuple(palette)

        coloured: list[Route] = []
        by_id: dict[str, Route] = {}
        for index, route in enumerate(routes):
            if route.id in by_id:
                raise ValueError(f"Duplicate route id '{route.id}'.")
            route = dataclasses.replace(route, color=self.palette[index % len(self.palette)])
            coloured.append(route)
            by_id[route.id] = route
        self._routes: tuple[Route, ...] = tuple(coloured)
        self._routes_by_id = by_id

        stops_by_id: dict[str, Stop] = {}
        stops_by_route: dict[str, list[Stop]] = {route.id: [] for route in coloured}
        for stop in stops:
            if stop.route_id not in by_id:
                raise UnknownRouteError(stop.route_id)
            if stop.id in stops_by_id:
                raise ValueError(f"Duplicate stop id '{stop.id}'.")
            if stop.sequence < 0:
                raise ValueError(f"Stop '{stop.id}' has a negative sequence {stop.sequence}.")
            if any(existing.sequence == stop.sequence for existing in stops_by_route[stop.route_id]):
                raise ValueError(
                    f"Route '{stop.route_id}' already has a stop with sequence {stop.sequence}."
                )
            stops_by_id[stop.id] = stop
            stops_by_route[stop.route_id].append(stop)

        self._stops: tuple[Stop, ...] = tuple(stops_by_id.values())
        self._stops_by_id = stops_by_id
        self._stops_by_route = {
            route_id: tuple(sorted(route_stops, key=lambda s: s.sequence))
            for route_id, route_stops in stops_by_route.items()
        }

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteRegistry(routes={len(self._routes)}, stops={len(self._stops)})"

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    @property
    def stops(self) -> tuple[Stop, ...]:
        return self._stops

    def get_route(self, route_id: str) -> Route:
        try:
            return self._routes_by_id[route_id]
        except KeyError:
            raise UnknownRouteError(route_id) from None

    def get_stop(self, stop_id: str) -> Stop:
        try:
            return self._stops_by_id[stop_id]
        except KeyError:
            raise UnknownStopError(stop_id) from None

    def has_route(self, route_id: str) -> bool:
        return route_id in self._routes_by_id

    def stops_of_route(self, route_id: str) -> tuple[Stop, ...]:
        """Stops of ``route_id`` ordered by sequence."""
        if route_id not in self._stops_by_route:
            raise UnknownRouteError(route_id)
        return self._stops_by_route[route_id]

    def route_of_stop(self, stop_id: str) -> Route:
        return self._routes_by_id[self.get_stop(stop_id).route_id]

    def color_of(self, route_id: str) -> str:
        return self.get_route(route_id).color or self.palette[0]

    def next_sequence(self, route_id: str) -> int:
        route_stops = self.stops_of_route(route_id)
        return route_stops[-1].sequence + 1 if route_stops else 0

    def with_route(self, route: Route) -> "RouteRegistry":
        """Return a new snapshot with ``route`` appended."""
        return RouteRegistry(self._routes + (route,), self._stops, self.palette)

    def with_stop(self, stop: Stop) -> "RouteRegistry":
        """Return a new snapshot with ``stop`` appended."""
        return RouteRegistry(self._routes, self._stops + (stop,), self.palette)


class RegistryStore:
    """Holds the current registry snapshot.

    Readers grab ``snapshot`` once per query without locking. Writers go through
    ``update`` or ``reload``, which build the next registry and swap it in while
    holding the write lock, so concurrent edits are applied one after another
    and a query never sees a half-loaded collection.
    """

    def __init__(
        self,
        registry: Optional[RouteRegistry] = None,
        loader: Optional[Callable[[], RouteRegistry]] = None,
    ) -> None:
        self._snapshot = registry if registry is not None else RouteRegistry()
        self._loader = loader
        self._write_lock = threading.RLock()

    @property
    def snapshot(self) -> RouteRegistry:
        return self._snapshot

    def swap(self, registry: RouteRegistry) -> RouteRegistry:
        with self._write_lock:
            previous = self._snapshot
            self._snapshot = registry
        logger.info(
            f"Registry swapped: {len(previous.routes)} -> {len(registry.routes)} routes, "
            f"{len(previous.stops)} -> {len(registry.stops)} stops"
        )
        return previous

    def update(self, build: Callable[[RouteRegistry], tuple[RouteRegistry, T]]) -> T:
        """Derive the next snapshot from the current one and swap it in.

        ``build`` receives the current registry and returns ``(registry, result)``.
        Exceptions raised by ``build`` propagate and leave the snapshot unchanged.
        """
        with self._write_lock:
            registry, result = build(self._snapshot)
            self.swap(registry)
        return result

    def reload(self) -> RouteRegistry:
        """Build a fresh registry with the configured loader and swap it in."""
        if self._loader is None:
            raise RuntimeError("RegistryStore has no loader configured.")
        with self._write_lock:
            registry = self._loader()
            self.swap(registry)
        return registry
