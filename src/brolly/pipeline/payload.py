"""
Pydantic models for the two OpenWeatherMap payload shapes the engine accepts.

- Modern shape: One Call 3.0 (``current`` / ``hourly`` / ``daily``).
- Legacy shape: 5 day / 3 hour forecast (a flat ``list`` of buckets), used by demo data.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import InvalidPayloadShape

logger = logging.getLogger(__name__)

PayloadShape = Literal["modern", "legacy"]

_MODERN_KEYS = ("hourly", "daily")
_LEGACY_KEY = "list"


class _ProviderModel(BaseModel):
    model_config = {
        "extra": "ignore",
        "populate_by_name": True,
    }


class WeatherCondition(_ProviderModel):
    main: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None


class _HasConditions(_ProviderModel):
    weather: List[WeatherCondition] = Field(default_factory=list)

    @field_validator("weather", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def primary_condition(self) -> Optional[WeatherCondition]:
        return self.weather[0] if self.weather else None


class HourlyRain(_ProviderModel):
    one_hour: Optional[float] = Field(default=None, alias="1h")


class HourlyEntry(_HasConditions):
    dt: int
    temp: Optional[float] = None
    pop: Optional[float] = None
    rain: Optional[HourlyRain] = None
    wind_speed: Optional[float] = None


class DailyTemperature(_ProviderModel):
    morn: Optional[float] = None
    day: Optional[float] = None
    eve: Optional[float] = None
    night: Optional[float] = None


class DailyEntry(_HasConditions):
    dt: Optional[int] = None
    temp: Optional[DailyTemperature] = None
    pop: Optional[float] = None
    # One Call reports the daily rain volume as a plain number (mm for the whole day).
    rain: Optional[float] = None
    wind_speed: Optional[float] = None


class CurrentConditions(_HasConditions):
    dt: Optional[int] = None
    temp: Optional[float] = None
    wind_speed: Optional[float] = None


class OneCallPayload(_ProviderModel):
    """One Call 3.0 response (``units=metric``)."""

    shape: ClassVar[PayloadShape] = "modern"

    current: Optional[CurrentConditions] = None
    hourly: List[HourlyEntry] = Field(default_factory=list)
    daily: List[DailyEntry] = Field(default_factory=list)
    timezone: Optional[str] = None
    timezone_offset: Optional[int] = None

    @field_validator("hourly", "daily", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class LegacyMain(_ProviderModel):
    temp: Optional[float] = None


class LegacyWind(_ProviderModel):
    speed: Optional[float] = None


class LegacyRain(_ProviderModel):
    three_hours: Optional[float] = Field(default=None, alias="3h")


class LegacyBucket(_HasConditions):
    dt: Optional[int] = None
    main: Optional[LegacyMain] = None
    pop: Optional[float] = None
    rain: Optional[LegacyRain] = None
    wind: Optional[LegacyWind] = None


class LegacyPayload(_ProviderModel):
    """5 day / 3 hour forecast response; carries no per-window granularity."""

    shape: ClassVar[PayloadShape] = "legacy"

    buckets: List[LegacyBucket] = Field(default_factory=list, alias="list")


ForecastPayload = Union[OneCallPayload, LegacyPayload]


def detect_shape(raw: Mapping[str, Any]) -> PayloadShape:
    """
    Decide which provider shape a raw payload uses.

    Raises:
        InvalidPayloadShape: If the payload is not a mapping, carries neither shape, or mixes both.
    """
    if not isinstance(raw, Mapping):
        raise InvalidPayloadShape("payload must be a JSON object")
    has_modern = any(raw.get(key) is not None for key in _MODERN_KEYS)
    has_legacy = raw.get(_LEGACY_KEY) is not None
    if has_modern and has_legacy:
        raise InvalidPayloadShape("payload mixes hourly/daily and list fields")
    if has_modern:
        return "modern"
    if has_legacy:
        return "legacy"
    raise InvalidPayloadShape("payload has neither hourly/daily nor list fields")


def parse_payload(raw: Mapping[str, Any] | ForecastPayload) -> ForecastPayload:
    """
    Validate a raw provider payload into its typed variant.

    Already-parsed payloads are returned unchanged.
    """
    if isinstance(raw, (OneCallPayload, LegacyPayload)):
        return raw

    shape = detect_shape(raw)
    model = OneCallPayload if shape == "modern" else LegacyPayload
    try:
        payload = model.model_validate(dict(raw))
    except ValidationError as exc:
        logger.debug("Payload failed %s validation: %s", shape, exc)
        raise InvalidPayloadShape(f"malformed {shape} payload ({exc.error_count()} error(s))") from exc
    return payload
