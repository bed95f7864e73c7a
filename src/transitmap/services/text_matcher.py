"""Case-insensitive text search over route names and descriptions."""

from __future__ import annotations

from typing import Iterable

from ..models.domain import Route


def match_by_text(term: str, routes: Iterable[Route]) -> list[str]:
    """Return ids of routes whose name or description contains ``term``.

    Matching is case-insensitive; a blank term matches nothing.
    """

    needle = term.strip().casefold()
    if not needle:
        return []
    return [
        route.id
        for route in routes
        if needle in (route.name or "").casefold() or needle in (route.description or "").casefold()
    ]
