"""Route runtime and walking time estimates."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from ..config import settings
from ..models.domain import Stop
from .geospatial import haversine_m

DEFAULT_DWELL_SECONDS = 30
MAX_DWELL_SECONDS = 300
MAX_LEG_SECONDS = 1800
START_MINUTE = 7 * 60


def _parse_window(window: str) -> tuple[int, int]:
    start, end = window.split("-", 1)

    def to_minutes(value: str) -> int:
        hours, minutes = value.strip().split(":", 1)
        return int(hours) * 60 + int(minutes)

    return to_minutes(start), to_minutes(end)


def speed_for_minute(minute_of_day: int, peak_windows: Optional[Sequence[str]] = None) -> float:
    """Bus speed in km/h at a given minute of the day."""

    minute = minute_of_day % (24 * 60)
    for window in peak_windows if peak_windows is not None else settings.peak_windows:
        start, end = _parse_window(window)
        if start <= minute < end:
            return settings.peak_speed_kmh
    return settings.offpeak_speed_kmh


def normalize_dwell(value: Optional[float], fallback: int = DEFAULT_DWELL_SECONDS) -> int:
    if value is None or not math.isfinite(value) or value < 0 or value > MAX_DWELL_SECONDS:
        return fallback
    return round(value)


def is_sensible_travel_time(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and 0 <= value <= MAX_LEG_SECONDS


def estimate_route_runtime_seconds(stops: Sequence[Stop]) -> Optional[int]:
    """Estimate end-to-end runtime of a route from its stops.

    Recorded leg times are used when plausible; otherwise the leg is driven at the
    time-of-day speed over its great-circle length. The clock starts at 07:00.
    Returns None for a route without stops.
    """

    ordered = sorted(stops, key=lambda stop: stop.sequence)
    if not ordered:
        return None

    total = 0
    clock_min = START_MINUTE
    for index, stop in enumerate(ordered):
        dwell = normalize_dwell(stop.dwell_time_s)
        if index == 0:
            total += dwell
            continue

        previous = ordered[index - 1]
        meters = haversine_m(
            previous.position.lat, previous.position.lng, stop.position.lat, stop.position.lng
        )
        speed_kmh = max(speed_for_minute(clock_min), 1e-6)
        estimated = round((meters / 1000) / speed_kmh * 3600)
        leg = stop.travel_time_s if is_sensible_travel_time(stop.travel_time_s) else estimated
        total += leg + dwell
        clock_min += round((leg + dwell) / 60)
    return round(total)


def walking_minutes(distance_m: float) -> int:
    return round(distance_m / settings.walking_speed_m_per_min)


def format_duration(total_seconds: Optional[float]) -> str:
    """Human readable duration such as '45 min' or '1:05 h'."""

    if total_seconds is None:
        return "-"
    minutes = round(total_seconds / 60)
    hours, remainder = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}:{remainder:02d} h"
    return f"{minutes} min"
