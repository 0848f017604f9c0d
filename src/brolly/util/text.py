"""
Text-related helpers.
"""

from __future__ import annotations


def capitalize_first(value: str | None) -> str:
    """
    Upper-case the first character only, leaving the rest untouched.

    ``str.capitalize`` would lower-case the remainder ("Heavy Rain" -> "Heavy rain").
    """
    text = (value or "").strip()
    if not text:
        return ""
    return text[0].upper() + text[1:]
