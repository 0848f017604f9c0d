"""
Errors raised when a forecast payload cannot be turned into an advisory.
"""

from __future__ import annotations


class ForecastDataError(ValueError):
    """Base class for unusable forecast payloads. The message is safe to show to users."""

    default_message = "invalid forecast data"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = self.default_message if not detail else f"{self.default_message}: {detail}"
        super().__init__(message)


class InvalidPayloadShape(ForecastDataError):
    """Neither (or both) provider shapes were found, or required nested fields are missing."""


class EmptyWindowNoFallback(ForecastDataError):
    """No hourly sample falls inside the window and no daily aggregate can stand in."""
