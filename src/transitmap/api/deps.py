"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections import OrderedDict

from fastapi import Depends

from ..data.registry import RegistryStore
from ..data.routes_repository import get_store
from ..services.geocoding.nominatim import Geocoder, NominatimGeocoder
from ..services.matching.planner import SearchSession, TripPlanner

MAX_SEARCH_SESSIONS = 1024

_sessions: "OrderedDict[str, SearchSession]" = OrderedDict()


def registry_store() -> RegistryStore:
    return get_store()


def get_geocoder() -> Geocoder:
    return NominatimGeocoder()


def trip_planner(
    geocoder: Geocoder = Depends(get_geocoder),
    store: RegistryStore = Depends(registry_store),
) -> TripPlanner:
    return TripPlanner(geocoder, lambda: store.snapshot)


def search_session(session_id: str, planner: TripPlanner) -> SearchSession:
    """Return the session for ``session_id``, evicting the least recently used."""
    session = _sessions.get(session_id)
    if session is None:
        session = SearchSession(planner)
        _sessions[session_id] = session
        while len(_sessions) > MAX_SEARCH_SESSIONS:
            _sessions.popitem(last=False)
    else:
        session.planner = planner
        _sessions.move_to_end(session_id)
    return session


def clear_search_sessions() -> None:
    _sessions.clear()
