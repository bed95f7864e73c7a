"""Transit map proximity and route-matching service."""

__version__ = "0.1.0"
