"""Data access helpers for loading route and stop feature collections."""

from __future__ import annotations

import functools
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ..config import settings
from ..errors import InvalidGeometryError
from ..models.domain import Location, Route, Stop
from ..services.geofence import validate_path
from ..services.geospatial import validate_location
from .registry import RegistryStore, RouteRegistry

logger = logging.getLogger(__name__)

ROUTES_FILENAME = "routes.geojson"
STOPS_FILENAME = "stops.geojson"
INDEX_FILENAME = "index.json"


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).replace(",", ""))
    except ValueError as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def _coerce_int(value: Any) -> Optional[int]:
    number = _coerce_float(value)
    if number is None:
        return None
    if not number.is_integer():
        raise ValueError(f"Expected an integer, got '{value}'")
    return int(number)


def parse_location(coordinates: Any) -> Location:
    """Parse a GeoJSON ``[lng, lat]`` position."""

    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        raise InvalidGeometryError(f"Invalid GeoJSON position: {coordinates!r}")
    try:
        lng, lat = float(coordinates[0]), float(coordinates[1])
    except (TypeError, ValueError) as exc:
        raise InvalidGeometryError(f"Invalid GeoJSON position: {coordinates!r}") from exc
    return validate_location(Location(lat=lat, lng=lng))


def parse_route_feature(feature: dict, route_id: Optional[str] = None) -> Route:
    """Build a Route from a GeoJSON LineString (or MultiLineString) feature."""

    geometry = feature.get("geometry") or {}
    properties = dict(feature.get("properties") or {})
    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []

    if geometry_type == "LineString":
        positions = coordinates
    elif geometry_type == "MultiLineString":
        positions = [position for part in coordinates for position in part]
    else:
        raise InvalidGeometryError(f"Route geometry must be a LineString, got {geometry_type!r}.")

    path = validate_path([parse_location(position) for position in positions])
    resolved_id = str(route_id or properties.get("id") or "").strip()
    if not resolved_id:
        raise ValueError("Route feature is missing an id.")

    return Route(
        id=resolved_id,
        name=str(properties.get("name") or resolved_id),
        description=str(properties.get("desc") or properties.get("description") or ""),
        path=path,
        notes=properties.get("notes"),
        properties=properties,
    )


def parse_stop_feature(feature: dict, route_id: Optional[str] = None, default_sequence: int = 0) -> Stop:
    """Build a Stop from a GeoJSON Point feature."""

    geometry = feature.get("geometry") or {}
    properties = feature.get("properties") or {}
    if geometry.get("type") != "Point":
        raise InvalidGeometryError(f"Stop geometry must be a Point, got {geometry.get('type')!r}.")

    position = parse_location(geometry.get("coordinates"))
    resolved_route = str(route_id or properties.get("routeId") or "").strip()
    if not resolved_route:
        raise ValueError("Stop feature is missing a routeId.")
    sequence = _coerce_int(properties.get("sequence"))
    if sequence is None:
        sequence = default_sequence
    if sequence < 0:
        raise ValueError(f"Stop sequence must be >= 0, got {sequence}.")
    stop_id = str(properties.get("id") or f"{resolved_route}-{sequence}").strip()

    return Stop(
        id=stop_id,
        route_id=resolved_route,
        sequence=sequence,
        position=position,
        travel_time_s=_coerce_float(properties.get("travelTime")),
        dwell_time_s=_coerce_float(properties.get("dwellTime")),
    )


def build_registry(
    route_features: Iterable[dict],
    stop_features: Iterable[dict],
    palette: Optional[Sequence[str]] = None,
) -> RouteRegistry:
    """Parse features into a registry, skipping and logging invalid entities."""

    routes: list[Route] = []
    route_ids: set[str] = set()
    for index, feature in enumerate(route_features):
        try:
            route = parse_route_feature(feature)
        except ValueError as exc:
            logger.warning(f"Skipping route feature #{index}: {exc}")
            continue
        if route.id in route_ids:
            logger.warning(f"Skipping duplicate route '{route.id}'")
            continue
        route_ids.add(route.id)
        routes.append(route)

    stops: list[Stop] = []
    stop_ids: set[str] = set()
    sequences: set[tuple[str, int]] = set()
    # unsequenced stops default to their position within their own route
    per_route: Counter[str] = Counter()
    for index, feature in enumerate(stop_features):
        route_key = str((feature.get("properties") or {}).get("routeId") or "").strip()
        position = per_route[route_key]
        per_route[route_key] += 1
        try:
            stop = parse_stop_feature(feature, default_sequence=position)
        except ValueError as exc:
            logger.warning(f"Skipping stop feature #{index}: {exc}")
            continue
        if stop.route_id not in route_ids:
            logger.warning(f"Skipping stop '{stop.id}': route '{stop.route_id}' is not loaded")
            continue
        if stop.id in stop_ids:
            logger.warning(f"Skipping duplicate stop '{stop.id}'")
            continue
        if (stop.route_id, stop.sequence) in sequences:
            logger.warning(
                f"Skipping stop '{stop.id}': route '{stop.route_id}' already has sequence {stop.sequence}"
            )
            continue
        stop_ids.add(stop.id)
        sequences.add((stop.route_id, stop.sequence))
        stops.append(stop)

    return RouteRegistry(routes, stops, palette or settings.route_palette)


def _read_json(path: Path) -> Any:
    with path.open(mode="r", encoding="utf-8-sig") as handle:
        return json.load(handle)


def load_feature_collections(
    routes_dir: Optional[Path] = None,
    index_file: Optional[Path] = None,
) -> tuple[list[dict], list[dict]]:
    """Read the route index and every listed route folder.

    The folder name becomes the route id and is stamped onto each of its stops.
    Folders that are missing or unreadable are logged and skipped.
    """

    base = routes_dir or settings.routes_dir
    index_path = index_file or settings.routes_index_file
    if not index_path.exists():
        raise FileNotFoundError(f"Route index not found: {index_path}")

    folders = _read_json(index_path)
    if not isinstance(folders, list):
        raise ValueError(f"Route index '{index_path}' must be a JSON array of route folder names.")

    route_features: list[dict] = []
    stop_features: list[dict] = []
    for folder in folders:
        route_id = str(folder).strip()
        folder_path = base / route_id
        try:
            routes_fc = _read_json(folder_path / ROUTES_FILENAME)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Could not load route '{route_id}': {exc}")
            continue

        features = routes_fc.get("features") or []
        if not features:
            logger.warning(f"Route '{route_id}' has no features; skipping")
            continue
        route_feature = dict(features[0])
        route_feature["properties"] = {**(route_feature.get("properties") or {}), "id": route_id}
        route_features.append(route_feature)

        try:
            stops_fc = _read_json(folder_path / STOPS_FILENAME)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Could not load stops for route '{route_id}': {exc}")
            continue
        for stop_feature in stops_fc.get("features") or []:
            stop_feature = dict(stop_feature)
            stop_feature["properties"] = {**(stop_feature.get("properties") or {}), "routeId": route_id}
            stop_features.append(stop_feature)

    return route_features, stop_features


def load_registry(routes_dir: Optional[Path] = None, index_file: Optional[Path] = None) -> RouteRegistry:
    route_features, stop_features = load_feature_collections(routes_dir, index_file)
    registry = build_registry(route_features, stop_features)
    logger.info(f"Loaded {len(registry.routes)} routes and {len(registry.stops)} stops")
    return registry


@functools.lru_cache(maxsize=1)
def get_store() -> RegistryStore:
    """Process-wide registry store, loaded from the configured route folders."""

    store = RegistryStore(loader=load_registry)
    try:
        store.reload()
    except FileNotFoundError as exc:
        logger.warning(f"Starting with an empty registry: {exc}")
    return store


def get_registry() -> RouteRegistry:
    return get_store().snapshot
