"""GeoJSON export of routes and their stops."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ...data.registry import RouteRegistry
from ...models.domain import Route, Stop
from ...persistence.filesystem import RouteFolderStorage


def route_to_feature(route: Route) -> Dict[str, Any]:
    """Convert a route to a GeoJSON LineString feature ([lng, lat] order)."""
    properties = dict(route.properties)
    properties.update(
        {
            "id": route.id,
            "name": route.name,
            "desc": route.description,
            "notes": route.notes,
            "color": route.color,
        }
    )
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {
            "type": "LineString",
            "coordinates": [[loc.lng, loc.lat] for loc in route.path],
        },
    }


def stop_to_feature(stop: Stop) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "properties": {
            "id": stop.id,
            "routeId": stop.route_id,
            "sequence": stop.sequence,
            # unknown times stay null
            "travelTime": stop.travel_time_s,
            "dwellTime": stop.dwell_time_s,
        },
        "geometry": {
            "type": "Point",
            "coordinates": [stop.position.lng, stop.position.lat],
        },
    }


def feature_collection(features: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": features}


def export_route_collections(registry: RouteRegistry, route_id: str) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Return the (routes, stops) feature collections for one route."""
    route = registry.get_route(route_id)
    routes_fc = feature_collection([route_to_feature(route)])
    stops_fc = feature_collection([stop_to_feature(stop) for stop in registry.stops_of_route(route_id)])
    return routes_fc, stops_fc


def save_route_export(registry: RouteRegistry, route_id: str, storage: RouteFolderStorage | None = None) -> Path:
    """Export a route and its stops into a new run directory.

    Returns:
        The run directory. It holds an index.json and the route folder, so it
        can be loaded directly as a routes directory.
    """
    routes_fc, stops_fc = export_route_collections(registry, route_id)
    storage = storage or RouteFolderStorage()
    run_dir = storage.make_run_directory(prefix=f"route_{route_id}")
    storage.write_route_folder(run_dir, route_id, routes_fc, stops_fc)
    return run_dir
