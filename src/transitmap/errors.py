"""Exception taxonomy for spatial queries, matching and admin validation."""

from __future__ import annotations


class TransitMapError(Exception):
    """Base class for errors raised by the transit map engine."""


class InvalidGeometryError(TransitMapError, ValueError):
    """Coordinates are non-finite, out of range, or a path is degenerate."""


class GeocodingMiss(TransitMapError):
    """No coordinates could be resolved for a search term."""

    def __init__(self, term: str) -> None:
        super().__init__(f"No location found for '{term}'.")
        self.term = term


class DegenerateQueryError(TransitMapError):
    """Origin and destination resolve to (nearly) the same place."""

    def __init__(self, separation_m: float, epsilon_m: float) -> None:
        super().__init__(
            f"Origin and destination are {separation_m:.1f} m apart "
            f"(minimum {epsilon_m:.1f} m); choose two different places."
        )
        self.separation_m = separation_m
        self.epsilon_m = epsilon_m


class AdminValidationError(TransitMapError):
    """A proposed admin edit was rejected; the registry was not modified."""


class UnknownRouteError(TransitMapError, KeyError):
    """A route id does not exist in the current registry snapshot."""

    def __init__(self, route_id: str) -> None:
        super().__init__(route_id)
        self.route_id = route_id

    def __str__(self) -> str:
        return f"Unknown route '{self.route_id}'."


class UnknownStopError(TransitMapError, KeyError):
    """A stop id does not exist in the current registry snapshot."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(stop_id)
        self.stop_id = stop_id

    def __str__(self) -> str:
        return f"Unknown stop '{self.stop_id}'."
