"""
Credential-hiding proxy for OpenWeatherMap requests.

Front ends send ``{endpoint, lat, lon}`` or ``{endpoint, q}``; the proxy adds the API
key, forwards the call and returns the provider JSON unmodified, or a structured error.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .openweather import (
    DEFAULT_EXCLUDE,
    GEO_DIRECT_URL,
    GEO_REVERSE_URL,
    ONECALL_URL,
    REQUEST_TIMEOUT,
    onecall_params,
)

logger = logging.getLogger(__name__)

ENDPOINTS = ("weather", "geo-reverse", "geo-direct")


@dataclass
class ProxyResponse:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_json(self) -> str:
        return json.dumps(self.body)


def _error(status_code: int, message: str) -> ProxyResponse:
    return ProxyResponse(status_code=status_code, body={"error": message})


def _build_upstream(endpoint: str, params: Mapping[str, Any], api_key: str) -> tuple[str, Dict[str, Any]] | ProxyResponse:
    if endpoint in ("weather", "geo-reverse"):
        if not params.get("lat") or not params.get("lon"):
            return _error(400, f"Missing lat and/or lon parameters for the {endpoint} endpoint")
        if endpoint == "weather":
            return ONECALL_URL, onecall_params(
                params["lat"], params["lon"], api_key=api_key, exclude=params.get("exclude") or DEFAULT_EXCLUDE
            )
        return GEO_REVERSE_URL, {"lat": params["lat"], "lon": params["lon"], "limit": 1, "appid": api_key}

    if endpoint == "geo-direct":
        if not params.get("q"):
            return _error(400, "Missing q (city) parameter for the geo-direct endpoint")
        return GEO_DIRECT_URL, {"q": params["q"], "limit": 1, "appid": api_key}

    return _error(400, "Invalid endpoint")


def handle_request(
    method: str,
    params: Optional[Mapping[str, Any]],
    *,
    api_key: Optional[str],
    session: Optional[requests.Session] = None,
) -> ProxyResponse:
    """
    Validate a proxy request, forward it upstream, and wrap the outcome.

    Args:
        method: HTTP method of the incoming request; only GET is accepted.
        params: Query parameters (``endpoint`` plus ``lat``/``lon`` or ``q``).
        api_key: OpenWeatherMap key; never exposed to the caller.
        session: Optional requests session (defaults to the module-level ``requests``).

    Returns:
        A ProxyResponse carrying either the provider JSON or ``{"error": ...}``.
    """
    if (method or "").upper() != "GET":
        return ProxyResponse(status_code=405, body={"error": "Method not allowed"})

    params = params or {}
    endpoint = params.get("endpoint")
    if not endpoint:
        return _error(400, "Missing endpoint parameter")

    if not api_key:
        logger.error("Proxy called without an OpenWeatherMap API key configured")
        return _error(500, "API key not configured on the server")

    upstream = _build_upstream(str(endpoint), params, api_key)
    if isinstance(upstream, ProxyResponse):
        return upstream
    url, upstream_params = upstream

    client = session or requests
    try:
        resp = client.get(url, params=upstream_params, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        logger.error("Proxy upstream call to %s failed: %s", endpoint, exc)
        return _error(500, "Server error")

    if not resp.ok:
        logger.warning("OpenWeatherMap returned %s for %s", resp.status_code, endpoint)
        return _error(resp.status_code, f"OpenWeatherMap API error: {resp.status_code} {resp.reason}")

    try:
        data = resp.json()
    except ValueError as exc:
        logger.error("OpenWeatherMap returned invalid JSON for %s: %s", endpoint, exc)
        return _error(500, "Server error")
    return ProxyResponse(status_code=200, body=data)
