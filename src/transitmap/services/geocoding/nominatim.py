"""Async HTTP client for Nominatim-compatible geocoding services."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

import httpx

from ...config import settings
from ...errors import InvalidGeometryError
from ...models.domain import Location
from ..geospatial import validate_location

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GeocodedPlace:
    location: Location
    display_name: Optional[str] = None


class Geocoder(Protocol):
    async def geocode(self, text: str) -> Optional[GeocodedPlace]:
        ...


def normalize_search_term(term: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Expand a known short name into the place name sent to the geocoder."""

    table = settings.search_aliases if aliases is None else aliases
    key = term.strip().lower()
    return table.get(key, term.strip())


class NominatimGeocoder:
    """Resolve free-text place names to coordinates.

    Any failure (no results, malformed payloads, exhausted retries) is reported as
    ``None`` so callers can fall back to text matching.
    """

    def __init__(
        self,
        base_url: str | None = None,
        region_suffix: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        user_agent: str | None = None,
        aliases: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.geocoder_base_url
        if not self.base_url:
            raise ValueError("Geocoder base URL is not configured.")
        self.region_suffix = settings.geocoder_region_suffix if region_suffix is None else region_suffix
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.geocoder_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.geocoder_backoff_seconds
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.aliases = aliases
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )

    def build_query(self, text: str) -> str:
        term = normalize_search_term(text, self.aliases)
        if self.region_suffix and self.region_suffix.lower() not in term.lower():
            return f"{term}, {self.region_suffix}"
        return term

    async def geocode(self, text: str) -> Optional[GeocodedPlace]:
        if not text or not text.strip():
            return None
        params = {"format": "json", "limit": 1, "q": self.build_query(text)}

        async with self._client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get("/search", params=params)
                    response.raise_for_status()
                    payload = response.json()
                    break
                except httpx.HTTPStatusError as exc:
                    status_code = exc.response.status_code
                    if status_code < 500 and status_code != 429:
                        logger.warning(f"Geocoder rejected '{text}' with HTTP {status_code}")
                        return None
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Geocoder failed for '{text}' after {self.max_retries} retries: {exc}")
                        return None
                    await asyncio.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Geocoder unreachable for '{text}' after {self.max_retries} retries: {exc}")
                        return None
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Geocoder error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                    await asyncio.sleep(wait_time)
                except ValueError as exc:
                    logger.warning(f"Geocoder returned a non-JSON payload for '{text}': {exc}")
                    return None

        return _parse_first_result(payload, text)


def _parse_first_result(payload: object, text: str) -> Optional[GeocodedPlace]:
    if not isinstance(payload, list) or not payload:
        logger.info(f"No geocoding result for '{text}'")
        return None
    first = payload[0]
    if not isinstance(first, dict):
        return None
    try:
        location = validate_location(Location(lat=float(first["lat"]), lng=float(first["lon"])))
    except (KeyError, TypeError, ValueError, InvalidGeometryError) as exc:
        logger.warning(f"Ignoring malformed geocoding result for '{text}': {exc}")
        return None
    return GeocodedPlace(location=location, display_name=first.get("display_name"))
