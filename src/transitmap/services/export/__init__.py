"""GeoJSON export helpers."""

from .geojson import export_route_collections, save_route_export

__all__ = ["export_route_collections", "save_route_export"]
