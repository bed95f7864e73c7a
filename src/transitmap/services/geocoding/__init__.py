"""Geocoding clients."""

from .nominatim import GeocodedPlace, Geocoder, NominatimGeocoder, normalize_search_term

__all__ = ["GeocodedPlace", "Geocoder", "NominatimGeocoder", "normalize_search_term"]
