"""Admin commands for adding routes and stops to the live registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ...config import settings
from ...data.registry import RegistryStore, RouteRegistry
from ...errors import AdminValidationError, InvalidGeometryError, UnknownRouteError
from ...models.domain import Location, Route, Stop
from ..geofence import RouteCorridor, validate_path

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SubmitStop:
    route_id: str
    position: Location
    sequence: Optional[int] = None
    stop_id: Optional[str] = None
    tolerance_m: Optional[float] = None


@dataclass(slots=True, frozen=True)
class CommittedStop:
    stop: Stop
    offset_m: float


@dataclass(slots=True, frozen=True)
class SubmitRoute:
    name: str
    path: Sequence[Location]
    description: str = ""
    route_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CommittedRoute:
    route: Route


def _next_numeric_id(existing: Iterable[str], first: int) -> str:
    numeric = [int(value) for value in existing if value.isdigit()]
    return str(max([first - 1, *numeric]) + 1)


class RegistryEditor:
    """Validates admin edits and commits them as new registry snapshots.

    A rejected command raises ``AdminValidationError`` and leaves the store's
    snapshot exactly as it was.
    """

    def __init__(self, store: RegistryStore, tolerance_m: Optional[float] = None) -> None:
        self.store = store
        self.tolerance_m = settings.geofence_tolerance_m if tolerance_m is None else tolerance_m

    def submit_stop(self, command: SubmitStop) -> CommittedStop:
        committed = self.store.update(lambda registry: self._build_stop(registry, command))
        stop = committed.stop
        logger.info(
            f"Committed stop '{stop.id}' (seq {stop.sequence}) on route '{stop.route_id}', "
            f"{committed.offset_m:.1f} m off path"
        )
        return committed

    def _build_stop(self, registry: RouteRegistry, command: SubmitStop) -> tuple[RouteRegistry, CommittedStop]:
        try:
            route = registry.get_route(command.route_id)
        except UnknownRouteError as exc:
            raise AdminValidationError(f"Select an existing route before placing stops: {exc}") from exc

        tolerance = self.tolerance_m if command.tolerance_m is None else command.tolerance_m
        try:
            corridor = RouteCorridor.for_route(route, tolerance)
            on_route = corridor.contains(command.position)
            offset = corridor.offset_m(command.position)
        except (InvalidGeometryError, ValueError) as exc:
            raise AdminValidationError(f"Cannot validate stop: {exc}") from exc

        if not on_route:
            raise AdminValidationError(
                f"Stop is {offset:.0f} m away from route '{route.id}'; "
                f"it must lie within {tolerance:.0f} m of the path."
            )

        sequence = command.sequence if command.sequence is not None else registry.next_sequence(route.id)
        stop = Stop(
            id=command.stop_id or _next_numeric_id((s.id for s in registry.stops), settings.first_stop_id),
            route_id=route.id,
            sequence=sequence,
            position=command.position,
        )
        try:
            updated = registry.with_stop(stop)
        except ValueError as exc:
            raise AdminValidationError(str(exc)) from exc

        return updated, CommittedStop(stop=stop, offset_m=offset)

    def submit_route(self, command: SubmitRoute) -> CommittedRoute:
        committed = self.store.update(lambda registry: self._build_route(registry, command))
        route = committed.route
        logger.info(f"Committed route '{route.id}' ({route.name}) with colour {route.color}")
        return committed

    def _build_route(self, registry: RouteRegistry, command: SubmitRoute) -> tuple[RouteRegistry, CommittedRoute]:
        name = command.name.strip()
        if not name:
            raise AdminValidationError("A route needs a name.")
        if any(route.name.strip().lower() == name.lower() for route in registry.routes):
            raise AdminValidationError(f"A route named '{name}' already exists.")
        try:
            path = validate_path(list(command.path))
        except InvalidGeometryError as exc:
            raise AdminValidationError(f"Invalid route path: {exc}") from exc

        route = Route(
            id=command.route_id or _next_numeric_id((r.id for r in registry.routes), settings.first_route_id),
            name=name,
            description=command.description,
            path=path,
        )
        try:
            updated = registry.with_route(route)
        except ValueError as exc:
            raise AdminValidationError(str(exc)) from exc

        return updated, CommittedRoute(route=updated.get_route(route.id))
