"""Route group exports."""

from . import admin, health, routes, search, stops

__all__ = ["admin", "health", "routes", "search", "stops"]
