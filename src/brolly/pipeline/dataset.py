"""
Transform raw provider payloads into normalized per-hour samples for a time window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, List, Mapping, Optional, Tuple

from ..util.time import ensure_aware, from_unix
from .errors import EmptyWindowNoFallback, InvalidPayloadShape
from .payload import (
    DailyEntry,
    ForecastPayload,
    HourlyEntry,
    LegacyBucket,
    LegacyPayload,
    OneCallPayload,
    PayloadShape,
    WeatherCondition,
    parse_payload,
)
from .windows import ResolvedWindow, TimeWindow, resolve_window

logger = logging.getLogger(__name__)

CLEAR_CONDITION = ("Clear", "clear sky")
LEGACY_BUCKET_HOURS = 3

_KMH_FACTORS = {
    "kmh": 1.0,
    "kph": 1.0,
    "ms": 3.6,
    "mps": 3.6,
    "mph": 1.609344,
}


@dataclass(frozen=True)
class NormalizedSample:
    """
    One forecast sample on the engine's common scale.

    Attributes:
        hour: Local hour of the sample (the window's first hour for daily fallbacks).
        timestamp: Local time of the sample, or None for a daily fallback.
        rain_probability: Probability of precipitation, 0-100.
        precipitation: Rain volume for the sample period in mm.
        intensity: Rain rate in mm/h; None when the volume is a daily total.
        temperature: Temperature in the provider's unit, if reported.
        wind_speed: Wind speed in km/h (0 when not reported).
        condition: Main condition label (e.g. "Rain"), if reported.
        description: Human description (e.g. "light rain").
    """
    hour: int
    timestamp: Optional[datetime]
    rain_probability: float
    precipitation: float
    intensity: Optional[float]
    temperature: Optional[float]
    wind_speed: float
    condition: Optional[str]
    description: str = ""


@dataclass(frozen=True)
class WindowSelection:
    """
    Samples that fall in a resolved window.

    Attributes:
        samples: Hourly (or 3-hourly) samples in chronological order, or a single daily fallback.
        date_offset: 0 for the current day, 1 for the next one.
        is_daily_fallback: True when ``samples`` holds the daily aggregate.
        shape: Which payload variant the samples came from.
        fallback_condition: Present-condition label/description, used when no sample has one.
    """
    samples: Tuple[NormalizedSample, ...]
    date_offset: int
    is_daily_fallback: bool
    shape: PayloadShape
    fallback_condition: Optional[Tuple[str, str]] = None


def wind_to_kmh(value: Any, unit: str = "kmh") -> float:
    """Convert a wind speed to km/h; missing or invalid values become 0."""
    try:
        speed = float(value)
    except (TypeError, ValueError):
        return 0.0
    factor = _KMH_FACTORS.get((unit or "kmh").lower())
    if factor is None:
        raise ValueError(f"Unsupported wind speed unit '{unit}'")
    return speed * factor


def select_window(
    payload: Mapping[str, Any] | ForecastPayload,
    window: TimeWindow | str,
    now: datetime,
    *,
    wind_unit: str = "kmh",
) -> WindowSelection:
    """
    Restrict a forecast payload to the samples for ``window``.

    Modern payloads are filtered to the hourly samples inside the resolved window,
    falling back to ``daily[date_offset]`` when none match. Legacy payloads ignore
    the window and yield every bucket with ``date_offset`` 0.

    Args:
        payload: Raw provider JSON or an already-parsed payload model.
        window: Requested time window.
        now: Current instant; naive values are treated as UTC.
        wind_unit: Unit of the payload's wind speeds ("kmh", "ms" or "mph").

    Returns:
        The selected samples and the date offset they refer to.

    Raises:
        InvalidPayloadShape: If the payload shape cannot be recognised.
        EmptyWindowNoFallback: If no sample (hourly or daily) is usable.
    """
    parsed = parse_payload(payload)
    window = TimeWindow.parse(window)
    now = ensure_aware(now)
    if isinstance(parsed, LegacyPayload):
        return _select_legacy(parsed, tz=now.tzinfo, wind_unit=wind_unit)
    return _select_modern(parsed, resolve_window(window, now), wind_unit=wind_unit)


def _select_modern(payload: OneCallPayload, resolved: ResolvedWindow, *, wind_unit: str) -> WindowSelection:
    tz = resolved.start.tzinfo
    samples: List[NormalizedSample] = []
    for entry in payload.hourly:
        moment = _local_time(entry.dt, tz)
        if resolved.contains(moment):
            samples.append(_normalize_hourly(entry, moment, wind_unit=wind_unit))

    current = payload.current.primary_condition if payload.current else None
    fallback_condition = (current.main, current.description or "") if current and current.main else None

    logger.debug(
        "Window %s resolved to %s..%s (offset %d); %d hourly sample(s) matched",
        resolved.window.value,
        resolved.start.isoformat(),
        resolved.end.isoformat(),
        resolved.date_offset,
        len(samples),
    )
    if samples:
        return WindowSelection(
            samples=tuple(samples),
            date_offset=resolved.date_offset,
            is_daily_fallback=False,
            shape=payload.shape,
            fallback_condition=fallback_condition,
        )

    daily_entry = payload.daily[resolved.date_offset] if len(payload.daily) > resolved.date_offset else None
    if daily_entry is None or daily_entry.temp is None:
        raise EmptyWindowNoFallback(
            f"no hourly samples for the {resolved.window.value} window and no daily forecast for day +{resolved.date_offset}"
        )

    logger.debug("Falling back to daily forecast %d for window %s", resolved.date_offset, resolved.window.value)
    sample = _normalize_daily(daily_entry, resolved, wind_unit=wind_unit)
    return WindowSelection(
        samples=(sample,),
        date_offset=resolved.date_offset,
        is_daily_fallback=True,
        shape=payload.shape,
        fallback_condition=fallback_condition,
    )


def _select_legacy(payload: LegacyPayload, *, tz: tzinfo, wind_unit: str) -> WindowSelection:
    # Legacy/demo data has no per-window granularity: every bucket is used and the
    # requested window is ignored.
    if not payload.buckets:
        raise EmptyWindowNoFallback("legacy forecast list is empty")
    samples = tuple(_normalize_legacy(bucket, tz=tz, wind_unit=wind_unit) for bucket in payload.buckets)
    logger.debug("Legacy payload: using all %d bucket(s), window ignored", len(samples))
    return WindowSelection(
        samples=samples,
        date_offset=0,
        is_daily_fallback=False,
        shape=payload.shape,
    )


def _normalize_hourly(entry: HourlyEntry, moment: datetime, *, wind_unit: str) -> NormalizedSample:
    volume = _non_negative(entry.rain.one_hour if entry.rain else None)
    label, description = _condition_parts(entry.primary_condition)
    return NormalizedSample(
        hour=moment.hour,
        timestamp=moment,
        rain_probability=_percent(entry.pop),
        precipitation=volume,
        intensity=volume,
        temperature=entry.temp,
        wind_speed=wind_to_kmh(entry.wind_speed, wind_unit),
        condition=label,
        description=description,
    )


def _normalize_daily(entry: DailyEntry, resolved: ResolvedWindow, *, wind_unit: str) -> NormalizedSample:
    temps = entry.temp
    if resolved.window is TimeWindow.MORNING:
        temperature = temps.morn
    elif resolved.window is TimeWindow.EVENING:
        temperature = temps.eve
    else:
        temperature = temps.day

    label, description = _condition_parts(entry.primary_condition)
    if label is None:
        label, description = CLEAR_CONDITION
    return NormalizedSample(
        hour=resolved.start_hour,
        timestamp=None,
        rain_probability=_percent(entry.pop),
        precipitation=_non_negative(entry.rain),
        intensity=None,
        temperature=temperature,
        wind_speed=wind_to_kmh(entry.wind_speed, wind_unit),
        condition=label,
        description=description,
    )


def _normalize_legacy(bucket: LegacyBucket, *, tz: tzinfo, wind_unit: str) -> NormalizedSample:
    volume = _non_negative(bucket.rain.three_hours if bucket.rain else None)
    label, description = _condition_parts(bucket.primary_condition)
    moment = _local_time(bucket.dt, tz) if bucket.dt is not None else None
    return NormalizedSample(
        hour=moment.hour if moment else 0,
        timestamp=moment,
        rain_probability=_percent(bucket.pop),
        precipitation=volume,
        intensity=volume / LEGACY_BUCKET_HOURS,
        temperature=bucket.main.temp if bucket.main else None,
        wind_speed=wind_to_kmh(bucket.wind.speed if bucket.wind else None, wind_unit),
        condition=label,
        description=description,
    )


def _condition_parts(condition: Optional[WeatherCondition]) -> Tuple[Optional[str], str]:
    if condition is None or not condition.main:
        return None, ""
    return condition.main, condition.description or ""


def _percent(probability: Optional[float]) -> float:
    if probability is None:
        return 0.0
    return max(0.0, min(100.0, round(float(probability) * 100.0, 6)))


def _non_negative(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    return max(0.0, float(value))


def _local_time(timestamp: int, tz: tzinfo) -> datetime:
    try:
        return from_unix(timestamp, tz)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidPayloadShape(f"timestamp {timestamp} is out of range") from exc
