"""
Pydantic models for validating umbrella check configuration files.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ValidationError, field_validator, model_validator


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be loaded or validated."""


class CheckConfig(BaseModel):
    """
    Settings for a single umbrella check.

    Attributes:
        location: Place name resolved through direct geocoding (e.g., "Madrid, ES").
        latitude: Latitude; used together with ``longitude`` instead of ``location``.
        longitude: Longitude.
        window: Time window to evaluate.
        timezone: IANA timezone used to interpret the window hours; when unset, the
            forecast's own timezone is used (UTC if it reports none).
        wind_unit: Unit of wind speeds in saved payloads ("kmh", "ms" or "mph").
    """
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    window: Literal["morning", "afternoon", "evening", "today"] = "today"
    timezone: Optional[str] = None
    wind_unit: Literal["kmh", "ms", "mph"] = "kmh"

    model_config = {
        "extra": "forbid",
    }

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -90.0 <= value <= 90.0:
            raise ValueError("latitude must be between -90 and 90")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not -180.0 <= value <= 180.0:
            raise ValueError("longitude must be between -180 and 180")
        return value

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value.upper() == "UTC":
            return value
        try:
            ZoneInfo(value)
        except (ValueError, ZoneInfoNotFoundError) as exc:
            raise ValueError(f"unknown timezone '{value}'") from exc
        return value

    @model_validator(mode="after")
    def _check_location(self) -> "CheckConfig":
        has_coords = self.latitude is not None and self.longitude is not None
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if not has_coords and not (self.location or "").strip():
            raise ValueError("either location or latitude/longitude is required")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def load_config(path: Path | str) -> CheckConfig:
    """
    Load and validate a TOML config file into a CheckConfig instance.

    Args:
        path: Path to the TOML configuration file.

    Returns:
        A validated CheckConfig object.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("rb") as handle:
            raw_data: Dict[str, Any] = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in configuration file: {exc}") from exc

    return build_config(raw_data)


def build_config(data: Dict[str, Any]) -> CheckConfig:
    """Validate an already-parsed mapping, wrapping validation failures in ConfigError."""
    try:
        return CheckConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
