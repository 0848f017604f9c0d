"""
Weighted umbrella score, advisory levels, and situational caveats.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from ..util.text import capitalize_first
from .signals import AggregateSignals

logger = logging.getLogger(__name__)

WEIGHTS: Dict[str, float] = {
    "rain_probability": 0.40,
    "rain_amount": 0.30,
    "weather_condition": 0.20,
    "wind_speed": 0.10,
}

WIND_THRESHOLD_KMH = 20.0
WIND_PENALTY_PER_KMH = 5.0
HEAVY_INTENSITY_MM_H = 2.0
HEAVY_INTENSITY_BONUS = 20.0
PERSISTENT_RATIO = 0.7
PERSISTENT_RATIO_BONUS = 15.0
PROLONGED_RUN_HOURS = 3
PROLONGED_RUN_BONUS = 10.0

# Checked in order; the first match sets the base condition score.
_CONDITION_SCORES: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("thunderstorm",), 100.0),
    (("rain", "heavy"), 90.0),
    (("rain",), 80.0),
    (("shower",), 70.0),
    (("drizzle",), 60.0),
    (("snow",), 50.0),
    (("sleet",), 50.0),
    (("mist",), 10.0),
    (("fog",), 10.0),
)

CAVEAT_STRONG_WIND = "Strong wind, consider additional rain gear."
CAVEAT_PROLONGED_RAIN = "Prolonged rain periods expected."
CAVEAT_THUNDERSTORM = "Thunderstorm warning."


class AdvisoryLevel(str, Enum):
    DEFINITELY = "definitely"
    PROBABLY = "probably"
    MAYBE = "maybe"
    NO = "no"

    @property
    def label(self) -> str:
        return _LEVEL_DISPLAY[self].label

    @property
    def icon(self) -> str:
        return _LEVEL_DISPLAY[self].icon

    @property
    def color(self) -> str:
        return _LEVEL_DISPLAY[self].color

    @property
    def needs_umbrella(self) -> bool:
        return self is not AdvisoryLevel.NO


@dataclass(frozen=True)
class LevelDisplay:
    label: str
    icon: str
    color: str


_LEVEL_DISPLAY: Dict[AdvisoryLevel, LevelDisplay] = {
    AdvisoryLevel.DEFINITELY: LevelDisplay("Take an umbrella!", "☔", "danger"),
    AdvisoryLevel.PROBABLY: LevelDisplay("Better take an umbrella", "🌂", "warning"),
    AdvisoryLevel.MAYBE: LevelDisplay("An umbrella might come in handy", "🌦", "info"),
    AdvisoryLevel.NO: LevelDisplay("No umbrella needed", "☀", "success"),
}

# Inclusive lower bounds, highest first.
_LEVEL_THRESHOLDS: Tuple[Tuple[int, AdvisoryLevel], ...] = (
    (70, AdvisoryLevel.DEFINITELY),
    (50, AdvisoryLevel.PROBABLY),
    (30, AdvisoryLevel.MAYBE),
)


@dataclass(frozen=True)
class ScoreResult:
    """
    Outcome of scoring one window.

    Attributes:
        score: Umbrella score, 0-100.
        level: Advisory level for the score.
        caveats: Situational warnings in display order.
        description: Weather description followed by the caveats.
    """
    score: int
    level: AdvisoryLevel
    caveats: Tuple[str, ...] = ()
    description: str = ""

    @property
    def needs_umbrella(self) -> bool:
        return self.level.needs_umbrella


def rain_probability_score(signals: AggregateSignals) -> float:
    return max(0.0, min(100.0, signals.max_rain_probability))


def rain_amount_score(total_mm: float, peak_intensity: float = 0.0) -> float:
    """
    Logarithmic rain-volume score: the first millimetres count most, saturating at 100.
    """
    if total_mm <= 0:
        return 0.0
    value = min(100.0, 33.0 * math.log10(total_mm * 10.0 + 1.0))
    if peak_intensity > HEAVY_INTENSITY_MM_H:
        value = min(100.0, value + HEAVY_INTENSITY_BONUS)
    return value


def base_condition_score(condition: str, description: str = "") -> float:
    text = f"{condition} {description}".lower()
    for keywords, value in _CONDITION_SCORES:
        if all(keyword in text for keyword in keywords):
            return value
    return 0.0


def condition_score(signals: AggregateSignals) -> float:
    value = base_condition_score(signals.condition, signals.description)
    if signals.rain_hour_ratio > PERSISTENT_RATIO:
        value = min(100.0, value + PERSISTENT_RATIO_BONUS)
    if signals.longest_rain_run >= PROLONGED_RUN_HOURS:
        value = min(100.0, value + PROLONGED_RUN_BONUS)
    return value


def wind_score(wind_speed_kmh: float | None) -> float:
    """Full credit up to the threshold, then a linear penalty reaching 0 at 40 km/h."""
    if wind_speed_kmh is None or wind_speed_kmh <= WIND_THRESHOLD_KMH:
        return 100.0
    return max(0.0, 100.0 - (wind_speed_kmh - WIND_THRESHOLD_KMH) * WIND_PENALTY_PER_KMH)


def factor_scores(signals: AggregateSignals) -> Dict[str, float]:
    return {
        "rain_probability": rain_probability_score(signals),
        "rain_amount": rain_amount_score(signals.total_precipitation, signals.peak_intensity),
        "weather_condition": condition_score(signals),
        "wind_speed": wind_score(signals.peak_wind_speed),
    }


def is_dry(factors: Dict[str, float]) -> bool:
    """True when no rain-related factor contributes; wind alone never calls for an umbrella."""
    return all(factors[name] <= 0 for name in ("rain_probability", "rain_amount", "weather_condition"))


def score(signals: AggregateSignals) -> int:
    factors = factor_scores(signals)
    if is_dry(factors):
        logger.debug("Score factors %s -> dry window, 0", factors)
        return 0
    total = sum(WEIGHTS[name] * value for name, value in factors.items())
    # Half-up rounding; round() would send 82.5 to 82.
    result = int(math.floor(total + 0.5))
    logger.debug("Score factors %s -> %.2f -> %d", factors, total, result)
    return max(0, min(100, result))


def level_for(value: int) -> AdvisoryLevel:
    for threshold, level in _LEVEL_THRESHOLDS:
        if value >= threshold:
            return level
    return AdvisoryLevel.NO


def caveats_for(signals: AggregateSignals) -> Tuple[str, ...]:
    caveats = []
    if signals.peak_wind_speed > WIND_THRESHOLD_KMH:
        caveats.append(CAVEAT_STRONG_WIND)
    if signals.longest_rain_run >= PROLONGED_RUN_HOURS:
        caveats.append(CAVEAT_PROLONGED_RAIN)
    if "thunderstorm" in signals.condition.lower():
        caveats.append(CAVEAT_THUNDERSTORM)
    return tuple(caveats)


def evaluate(signals: AggregateSignals) -> ScoreResult:
    """Score the signals and attach the level, caveats and composed description."""
    value = score(signals)
    caveats = caveats_for(signals)
    base = capitalize_first(signals.description or signals.condition)
    description = " ".join(part for part in (base, *caveats) if part)
    return ScoreResult(score=value, level=level_for(value), caveats=caveats, description=description)
