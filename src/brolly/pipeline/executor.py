"""
Pipeline executor ties together the provider client, window selection, and scoring.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..api import coordinate_label, fetch_onecall, geocode_direct, geocode_reverse, ProviderError
from ..config import CheckConfig
from ..util.time import ensure_aware, resolve_timezone, utc_now
from .dataset import WindowSelection, select_window
from .errors import InvalidPayloadShape
from .payload import ForecastPayload
from .scoring import ScoreResult, evaluate
from .signals import AggregateSignals, aggregate
from .windows import TimeWindow, describe_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recommendation:
    """
    Everything a front end needs to render an umbrella advisory.

    Attributes:
        window: The window that was evaluated.
        date_offset: 0 for the current day, 1 for the next one.
        is_daily_fallback: True when the daily aggregate stood in for hourly data.
        result: Score, level, caveats and composed description.
        signals: Aggregated weather signals for the window.
        date_line: Human-readable date and window label.
    """
    window: TimeWindow
    date_offset: int
    is_daily_fallback: bool
    result: ScoreResult
    signals: AggregateSignals
    date_line: str

    @property
    def needs_umbrella(self) -> bool:
        return self.result.needs_umbrella

    def as_dict(self) -> Dict[str, Any]:
        level = self.result.level
        return {
            "window": self.window.value,
            "date_offset": self.date_offset,
            "date": self.date_line,
            "daily_fallback": self.is_daily_fallback,
            "score": self.result.score,
            "level": level.value,
            "needs_umbrella": level.needs_umbrella,
            "label": level.label,
            "icon": level.icon,
            "color": level.color,
            "caveats": list(self.result.caveats),
            "description": self.result.description,
            "signals": {
                "max_rain_probability": self.signals.max_rain_probability,
                "total_precipitation": self.signals.total_precipitation,
                "peak_intensity": self.signals.peak_intensity,
                "peak_wind_speed": self.signals.peak_wind_speed,
                "mean_temperature": self.signals.mean_temperature,
                "condition": self.signals.condition,
                "description": self.signals.description,
                "rain_hours": self.signals.rain_hours,
                "longest_rain_run": self.signals.longest_rain_run,
                "total_hours": self.signals.total_hours,
            },
        }


@dataclass(frozen=True)
class CheckOutcome:
    place: str
    recommendation: Recommendation


def recommend(
    payload: Mapping[str, Any] | ForecastPayload,
    window: TimeWindow | str,
    now: datetime,
    *,
    wind_unit: str = "kmh",
) -> Recommendation:
    """
    Turn a raw forecast payload into an umbrella recommendation for ``window``.

    Pure: the result depends only on the arguments.

    Args:
        payload: Raw provider JSON (One Call or legacy list) or a parsed payload.
        window: Requested time window.
        now: Current instant; its timezone defines the local day.
        wind_unit: Unit of the payload's wind speeds.

    Raises:
        InvalidPayloadShape: If the payload shape is not recognised.
        EmptyWindowNoFallback: If the window has no usable data.
    """
    window = TimeWindow.parse(window)
    now = ensure_aware(now)
    selection: WindowSelection = select_window(payload, window, now, wind_unit=wind_unit)
    signals = aggregate(selection.samples, fallback_condition=selection.fallback_condition)
    result = evaluate(signals)
    logger.debug(
        "Window %s (offset %d, %s): score %d -> %s",
        window.value,
        selection.date_offset,
        "daily fallback" if selection.is_daily_fallback else f"{len(selection.samples)} sample(s)",
        result.score,
        result.level.value,
    )
    return Recommendation(
        window=window,
        date_offset=selection.date_offset,
        is_daily_fallback=selection.is_daily_fallback,
        result=result,
        signals=signals,
        date_line=describe_date(now, window, selection.date_offset),
    )


def load_payload(path: Path | str) -> Dict[str, Any]:
    """Read a saved provider payload from disk."""
    payload_path = Path(path).expanduser().resolve()
    try:
        data = json.loads(payload_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise InvalidPayloadShape(f"unable to read {payload_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidPayloadShape(f"{payload_path} is not valid JSON") from exc
    if not isinstance(data, dict):
        raise InvalidPayloadShape(f"{payload_path} does not hold a JSON object")
    return data


def run_check(
    config: CheckConfig,
    *,
    now: Optional[datetime] = None,
    payload_path: Optional[Path] = None,
) -> CheckOutcome:
    """
    Resolve the configured location, obtain a forecast, and evaluate the window.

    A saved payload (``payload_path``) skips all network calls and uses the configured
    wind unit; live One Call data is requested in metric units (m/s). Window hours are
    local to ``config.timezone``, or to the forecast's own ``timezone`` when unset.

    Raises:
        ProviderError: If geocoding or the forecast request fails.
        ForecastDataError: If the payload cannot be evaluated.
    """
    if payload_path is not None:
        logger.info("Using saved payload %s", payload_path)
        payload = load_payload(payload_path)
        place = config.location or _saved_place_label(config)
        local_now = _local_now(now, config.timezone or payload.get("timezone"))
        recommendation = recommend(payload, config.window, local_now, wind_unit=config.wind_unit)
        return CheckOutcome(place=place, recommendation=recommendation)

    if config.has_coordinates:
        latitude, longitude = float(config.latitude), float(config.longitude)
        place = config.location or geocode_reverse(latitude, longitude)
    else:
        result = geocode_direct(config.location or "")
        if result is None:
            raise ProviderError(f"No place found matching '{config.location}'")
        latitude, longitude = result.latitude, result.longitude
        place = result.display_name

    payload = fetch_onecall(latitude, longitude)
    local_now = _local_now(now, config.timezone or payload.get("timezone"))
    recommendation = recommend(payload, config.window, local_now, wind_unit="ms")
    return CheckOutcome(place=place, recommendation=recommendation)


def _local_now(now: Optional[datetime], timezone_name: Any) -> datetime:
    tz = resolve_timezone(timezone_name if isinstance(timezone_name, str) else None)
    logger.debug("Evaluating windows in %s", tz)
    if now is None:
        return utc_now().astimezone(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def _saved_place_label(config: CheckConfig) -> str:
    if config.has_coordinates:
        return coordinate_label(float(config.latitude), float(config.longitude))
    return "Saved forecast"
