"""
External API clients used by the brolly pipeline.
"""

from .openweather import (
    GeocodeResult,
    ProviderError,
    coordinate_label,
    fetch_onecall,
    geocode_direct,
    geocode_reverse,
)
from .proxy import ProxyResponse, handle_request

__all__ = [
    "GeocodeResult",
    "ProviderError",
    "coordinate_label",
    "fetch_onecall",
    "geocode_direct",
    "geocode_reverse",
    "ProxyResponse",
    "handle_request",
]
