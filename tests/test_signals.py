from __future__ import annotations

from typing import Optional

import pytest

from brolly.pipeline.dataset import NormalizedSample
from brolly.pipeline.signals import aggregate, dominant_condition, is_rain_hour


def _sample(
    condition: Optional[str] = "Clear",
    description: str = "",
    *,
    hour: int = 9,
    pop: float = 0.0,
    rain: float = 0.0,
    intensity: Optional[float] = None,
    temp: Optional[float] = 15.0,
    wind: float = 5.0,
) -> NormalizedSample:
    return NormalizedSample(
        hour=hour,
        timestamp=None,
        rain_probability=pop,
        precipitation=rain,
        intensity=rain if intensity is None else intensity,
        temperature=temp,
        wind_speed=wind,
        condition=condition,
        description=description or (condition or "").lower(),
    )


def test_rain_hour_rule() -> None:
    assert is_rain_hour(_sample(rain=0.1))
    assert is_rain_hour(_sample(pop=41))
    assert not is_rain_hour(_sample(pop=40))
    assert not is_rain_hour(_sample())


def test_wet_condition_overwrites_earlier_choice() -> None:
    samples = [_sample("Clear"), _sample("Rain", "light rain"), _sample("Clear")]
    assert dominant_condition(samples) == ("Rain", "light rain")


def test_first_dry_condition_is_kept() -> None:
    samples = [_sample("Clear", "clear sky"), _sample("Mist", "mist")]
    assert dominant_condition(samples) == ("Clear", "clear sky")


def test_latest_wet_condition_wins() -> None:
    samples = [_sample("Thunderstorm"), _sample("Drizzle", "light intensity drizzle"), _sample("Clouds")]
    assert dominant_condition(samples) == ("Drizzle", "light intensity drizzle")


def test_samples_without_condition_are_skipped() -> None:
    assert dominant_condition([_sample(None), _sample("Clouds", "few clouds")]) == ("Clouds", "few clouds")
    assert dominant_condition([_sample(None)]) is None


def test_longest_run_tracks_consecutive_rain_hours() -> None:
    pattern = [1, 1, 0, 1, 1, 1, 0, 1]
    samples = [_sample(rain=0.5 if wet else 0.0, hour=6 + idx) for idx, wet in enumerate(pattern)]

    signals = aggregate(samples)

    assert signals.rain_hours == 6
    assert signals.longest_rain_run == 3
    assert signals.total_hours == 8
    assert signals.rain_hour_ratio == pytest.approx(0.75)


def test_aggregate_numeric_fields() -> None:
    samples = [
        _sample(pop=20, rain=0.4, temp=10.0, wind=8.0),
        _sample(pop=70, rain=2.6, temp=None, wind=22.0),
        _sample(pop=50, rain=1.0, temp=14.0, wind=12.0),
    ]
    signals = aggregate(samples)

    assert signals.max_rain_probability == 70
    assert signals.total_precipitation == pytest.approx(4.0)
    assert signals.peak_intensity == pytest.approx(2.6)
    assert signals.peak_wind_speed == 22.0
    assert signals.mean_temperature == pytest.approx(12.0)


def test_daily_total_has_no_peak_intensity() -> None:
    daily = NormalizedSample(
        hour=18,
        timestamp=None,
        rain_probability=90.0,
        precipitation=5.0,
        intensity=None,
        temperature=None,
        wind_speed=10.0,
        condition="Thunderstorm",
        description="thunderstorm",
    )
    signals = aggregate([daily])

    assert signals.peak_intensity == 0.0
    assert signals.total_precipitation == 5.0
    assert signals.mean_temperature is None


def test_missing_condition_falls_back_to_current_then_clear() -> None:
    samples = [_sample(None)]

    assert aggregate(samples, fallback_condition=("Clouds", "scattered clouds")).condition == "Clouds"
    clear = aggregate(samples)
    assert (clear.condition, clear.description) == ("Clear", "clear sky")


def test_aggregate_requires_samples() -> None:
    with pytest.raises(ValueError):
        aggregate([])
