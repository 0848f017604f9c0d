"""
OpenWeatherMap client: One Call forecasts and direct/reverse geocoding.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..config.settings import get_secrets

logger = logging.getLogger(__name__)

ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
GEO_DIRECT_URL = "https://api.openweathermap.org/geo/1.0/direct"
GEO_REVERSE_URL = "https://api.openweathermap.org/geo/1.0/reverse"
DEFAULT_EXCLUDE = "minutely,alerts"
REQUEST_TIMEOUT = 20


class ProviderError(RuntimeError):
    """Raised when the weather provider cannot be reached or returns unusable data."""


@dataclass
class GeocodeResult:
    """
    Resolved location data.

    Attributes:
        name: Place name as reported by the provider.
        latitude: Latitude coordinate.
        longitude: Longitude coordinate.
        country: ISO 3166-1 alpha-2 country code, if reported.
    """
    name: str
    latitude: float
    longitude: float
    country: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name


def _resolve_key(api_key: Optional[str]) -> str:
    key = api_key or get_secrets().openweathermap_api_key
    if not key:
        raise ProviderError("OPENWEATHERMAP_API_KEY is not configured")
    return key


def onecall_params(latitude: float, longitude: float, *, api_key: str, exclude: str = DEFAULT_EXCLUDE) -> Dict[str, Any]:
    return {
        "lat": latitude,
        "lon": longitude,
        "units": "metric",
        "exclude": exclude or DEFAULT_EXCLUDE,
        "appid": api_key,
    }


def fetch_onecall(
    latitude: float,
    longitude: float,
    *,
    api_key: Optional[str] = None,
    exclude: str = DEFAULT_EXCLUDE,
) -> Dict[str, Any]:
    """
    Retrieve the One Call 3.0 forecast for a coordinate.

    Wind speeds in the response are in m/s (``units=metric``).

    Returns:
        The provider JSON, unmodified.

    Raises:
        ProviderError: If the key is missing, the request fails, or the body is not JSON.
    """
    params = onecall_params(latitude, longitude, api_key=_resolve_key(api_key), exclude=exclude)
    logger.info("Fetching One Call forecast for lat=%.4f, lon=%.4f", latitude, longitude)
    try:
        resp = requests.get(ONECALL_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("OpenWeather One Call request failed: %s", exc)
        raise ProviderError(f"Unable to fetch weather data: {exc}") from exc

    try:
        data = resp.json()
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("OpenWeather One Call returned invalid JSON: %s", exc)
        raise ProviderError("Weather provider returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise ProviderError("Weather provider returned an unexpected payload")
    return data


def geocode_direct(query: str, *, api_key: Optional[str] = None) -> Optional[GeocodeResult]:
    """
    Resolve a place name into coordinates.

    Returns:
        The first match, or None if the provider has no result.

    Raises:
        ProviderError: If the key is missing or the request fails.
    """
    name = (query or "").strip()
    if not name:
        raise ValueError("A place name is required for geocoding")

    params = {"q": name, "limit": 1, "appid": _resolve_key(api_key)}
    try:
        resp = requests.get(GEO_DIRECT_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as exc:
        logger.warning("OpenWeather geocoding failed for %s: %s", name, exc)
        raise ProviderError(f"Unable to look up '{name}': {exc}") from exc
    except (json.JSONDecodeError, ValueError) as exc:
        raise ProviderError("Geocoding provider returned invalid JSON") from exc

    if not payload:
        logger.info("No geocoding results for %s", name)
        return None
    try:
        entry = payload[0]
        result = GeocodeResult(
            name=entry.get("name", name),
            latitude=float(entry["lat"]),
            longitude=float(entry["lon"]),
            country=entry.get("country"),
        )
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise ProviderError("Unexpected geocoding response structure") from exc
    logger.info("Geocode resolved '%s' (lat=%.4f, lon=%.4f)", name, result.latitude, result.longitude)
    return result


def coordinate_label(latitude: float, longitude: float) -> str:
    return f"{latitude:.2f}, {longitude:.2f}"


def geocode_reverse(latitude: float, longitude: float, *, api_key: Optional[str] = None) -> str:
    """
    Return a ``"Name, CC"`` label for a coordinate.

    Reverse lookup is cosmetic: any failure yields the plain coordinate label.
    """
    fallback = coordinate_label(latitude, longitude)
    key = api_key or get_secrets().openweathermap_api_key
    if not key:
        logger.debug("OPENWEATHERMAP_API_KEY not configured; using coordinates as the place name.")
        return fallback

    params = {"lat": latitude, "lon": longitude, "limit": 1, "appid": key}
    try:
        resp = requests.get(GEO_REVERSE_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        payload = resp.json()
        if not payload:
            return fallback
        entry = payload[0]
        name = entry["name"]
    except requests.RequestException as exc:
        logger.debug("OpenWeatherMap reverse geocode failed: %s", exc)
        return fallback
    except (IndexError, KeyError, TypeError, ValueError):
        logger.debug("Unexpected OpenWeatherMap reverse geocode response structure.")
        return fallback

    country = entry.get("country")
    return f"{name}, {country}" if country else name
