"""
Aggregate normalized samples into the signals the umbrella score is computed from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .dataset import CLEAR_CONDITION, NormalizedSample

logger = logging.getLogger(__name__)

RAIN_HOUR_PROBABILITY = 40.0
WET_CONDITION_KEYWORDS = ("rain", "drizzle", "thunderstorm", "shower", "snow", "sleet")


@dataclass(frozen=True)
class AggregateSignals:
    """
    Window-level weather signals.

    Attributes:
        max_rain_probability: Highest probability of precipitation (0-100).
        total_precipitation: Summed rain volume in mm.
        peak_intensity: Highest single-hour rain rate in mm/h (0 for a daily total).
        peak_wind_speed: Highest wind speed in km/h.
        mean_temperature: Mean of the reported temperatures, or None if none were reported.
        condition: Dominant condition label.
        description: Description belonging to the dominant condition.
        rain_hours: Number of samples counted as rain hours.
        longest_rain_run: Length of the longest run of consecutive rain hours.
        total_hours: Number of samples aggregated.
    """
    max_rain_probability: float
    total_precipitation: float
    peak_intensity: float
    peak_wind_speed: float
    mean_temperature: Optional[float]
    condition: str
    description: str
    rain_hours: int
    longest_rain_run: int
    total_hours: int

    @property
    def rain_hour_ratio(self) -> float:
        if self.total_hours <= 0:
            return 0.0
        return self.rain_hours / self.total_hours


def is_rain_hour(sample: NormalizedSample) -> bool:
    return sample.precipitation > 0 or sample.rain_probability > RAIN_HOUR_PROBABILITY


def is_wet_condition(label: Optional[str]) -> bool:
    text = (label or "").lower()
    return any(keyword in text for keyword in WET_CONDITION_KEYWORDS)


def dominant_condition(samples: Sequence[NormalizedSample]) -> Optional[Tuple[str, str]]:
    """
    Choose the condition that represents a window.

    The latest wet condition wins over anything stored before it; a dry condition
    is only kept if nothing has been stored yet.
    """
    chosen: Optional[Tuple[str, str]] = None
    for sample in samples:
        if not sample.condition:
            continue
        if is_wet_condition(sample.condition) or chosen is None:
            chosen = (sample.condition, sample.description)
    return chosen


def aggregate(
    samples: Sequence[NormalizedSample],
    *,
    fallback_condition: Optional[Tuple[str, str]] = None,
) -> AggregateSignals:
    """
    Reduce samples (chronological order) to a single AggregateSignals record.

    Args:
        samples: Hourly samples for the window, or the single daily fallback sample.
        fallback_condition: Label/description to use when no sample carries a condition.

    Returns:
        The aggregated signals.
    """
    if not samples:
        raise ValueError("aggregate() needs at least one sample")

    rain_hours = 0
    current_run = 0
    longest_run = 0
    previous_was_rain = False
    for sample in samples:
        if is_rain_hour(sample):
            rain_hours += 1
            current_run = current_run + 1 if previous_was_rain else 1
            longest_run = max(longest_run, current_run)
            previous_was_rain = True
        else:
            previous_was_rain = False

    temperatures = [sample.temperature for sample in samples if sample.temperature is not None]
    mean_temperature = sum(temperatures) / len(temperatures) if temperatures else None

    intensities = [sample.intensity for sample in samples if sample.intensity is not None]

    condition = dominant_condition(samples) or fallback_condition or CLEAR_CONDITION

    signals = AggregateSignals(
        max_rain_probability=max(sample.rain_probability for sample in samples),
        total_precipitation=sum(sample.precipitation for sample in samples),
        peak_intensity=max(intensities) if intensities else 0.0,
        peak_wind_speed=max(sample.wind_speed for sample in samples),
        mean_temperature=mean_temperature,
        condition=condition[0],
        description=condition[1],
        rain_hours=rain_hours,
        longest_rain_run=longest_run,
        total_hours=len(samples),
    )
    logger.debug("Aggregated %d sample(s): %s", len(samples), signals)
    return signals
