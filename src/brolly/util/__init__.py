"""
Shared utility helpers for time calculations and text.
"""

from .text import capitalize_first
from .time import utc_now, resolve_timezone, ensure_aware, from_unix

__all__ = [
    "capitalize_first",
    "utc_now",
    "resolve_timezone",
    "ensure_aware",
    "from_unix",
]
