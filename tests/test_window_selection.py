from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from brolly.pipeline import EmptyWindowNoFallback, InvalidPayloadShape
from brolly.pipeline.dataset import select_window, wind_to_kmh
from brolly.pipeline.signals import aggregate


def _ts(now: datetime, hour: int, *, days: int = 0) -> int:
    moment = now.replace(hour=hour, minute=0, second=0, microsecond=0) + timedelta(days=days)
    return int(moment.timestamp())


def _hour(now: datetime, hour: int, *, days: int = 0, pop: float = 0.0, rain: float | None = None, **extra) -> dict:
    entry = {
        "dt": _ts(now, hour, days=days),
        "temp": extra.pop("temp", 15.0),
        "pop": pop,
        "wind_speed": extra.pop("wind_speed", 5.0),
        "weather": extra.pop("weather", [{"main": "Clear", "description": "clear sky"}]),
    }
    if rain is not None:
        entry["rain"] = {"1h": rain}
    entry.update(extra)
    return entry


def _day(*, pop: float, rain: float | None = None, weather: list | None = None) -> dict:
    entry = {
        "temp": {"morn": 9.0, "day": 17.0, "eve": 13.0, "night": 8.0},
        "pop": pop,
        "wind_speed": 12.0,
        "weather": weather if weather is not None else [{"main": "Clouds", "description": "broken clouds"}],
    }
    if rain is not None:
        entry["rain"] = rain
    return entry


def test_hourly_samples_filtered_to_window(morning_now: datetime) -> None:
    hourly = [_hour(morning_now, hour) for hour in range(5, 14)]
    payload = {"current": {"temp": 14.0}, "hourly": hourly, "daily": []}

    selection = select_window(payload, "morning", morning_now)

    assert selection.date_offset == 0
    assert not selection.is_daily_fallback
    assert [sample.hour for sample in selection.samples] == [6, 7, 8, 9, 10, 11]


def test_hourly_sample_is_normalized(morning_now: datetime) -> None:
    hourly = [
        _hour(
            morning_now,
            9,
            pop=0.35,
            rain=1.25,
            wind_speed=4.0,
            weather=[{"main": "Rain", "description": "light rain"}, {"main": "Mist", "description": "mist"}],
        )
    ]
    selection = select_window({"hourly": hourly}, "morning", morning_now)
    sample = selection.samples[0]

    assert sample.rain_probability == pytest.approx(35.0)
    assert sample.precipitation == pytest.approx(1.25)
    assert sample.intensity == pytest.approx(1.25)
    assert sample.condition == "Rain"
    assert sample.description == "light rain"
    assert sample.wind_speed == pytest.approx(4.0)


def test_missing_optional_fields_default(morning_now: datetime) -> None:
    hourly = [{"dt": _ts(morning_now, 10)}]
    selection = select_window({"hourly": hourly}, "morning", morning_now)
    sample = selection.samples[0]

    assert sample.rain_probability == 0.0
    assert sample.precipitation == 0.0
    assert sample.wind_speed == 0.0
    assert sample.temperature is None
    assert sample.condition is None


def test_window_bounds_are_inclusive_through_last_hour(morning_now: datetime) -> None:
    hourly = [
        {"dt": _ts(morning_now, 6)},
        {"dt": _ts(morning_now, 11) + 59 * 60},
        {"dt": _ts(morning_now, 12)},
    ]
    selection = select_window({"hourly": hourly}, "morning", morning_now)
    assert len(selection.samples) == 2


def test_today_window_starts_at_current_hour(morning_now: datetime) -> None:
    hourly = [_hour(morning_now, hour) for hour in range(6, 24)]
    selection = select_window({"hourly": hourly}, "today", morning_now)

    assert selection.samples[0].hour == 8
    assert selection.samples[-1].hour == 23


def test_window_after_its_end_uses_next_day(morning_now: datetime) -> None:
    now = morning_now.replace(hour=13)
    hourly = [_hour(now, hour) for hour in range(13, 24)] + [_hour(now, hour, days=1) for hour in range(0, 12)]

    selection = select_window({"hourly": hourly}, "morning", now)

    assert selection.date_offset == 1
    assert [sample.hour for sample in selection.samples] == [6, 7, 8, 9, 10, 11]
    assert all(sample.timestamp.day == 19 for sample in selection.samples)


def test_daily_fallback_for_next_day(morning_now: datetime) -> None:
    now = morning_now.replace(hour=19)
    payload = {"hourly": [_hour(now, 19)], "daily": [_day(pop=0.1), _day(pop=0.5, rain=0)]}

    selection = select_window(payload, "afternoon", now)
    sample = selection.samples[0]

    assert selection.is_daily_fallback
    assert selection.date_offset == 1
    assert len(selection.samples) == 1
    assert sample.rain_probability == pytest.approx(50.0)
    assert sample.precipitation == 0.0
    assert sample.intensity is None
    assert sample.temperature == 17.0


def test_daily_fallback_picks_period_temperature(morning_now: datetime) -> None:
    payload = {"hourly": [], "daily": [_day(pop=0.5, rain=0), _day(pop=0.2)]}

    evening = select_window(payload, "evening", morning_now)
    assert evening.date_offset == 0
    assert evening.samples[0].temperature == 13.0

    late = morning_now.replace(hour=13)
    morning = select_window(payload, "morning", late)
    assert morning.date_offset == 1
    assert morning.samples[0].temperature == 9.0
    assert morning.samples[0].rain_probability == pytest.approx(20.0)

    today = select_window(payload, "today", morning_now)
    assert today.samples[0].temperature == 17.0


def test_daily_fallback_without_conditions_uses_clear(morning_now: datetime) -> None:
    payload = {"daily": [_day(pop=0.0, weather=[])]}
    sample = select_window(payload, "evening", morning_now).samples[0]

    assert sample.condition == "Clear"
    assert sample.description == "clear sky"


def test_no_hourly_and_no_daily_fails(morning_now: datetime) -> None:
    now = morning_now.replace(hour=13)
    payload = {"hourly": [_hour(now, 13)], "daily": [_day(pop=0.1)]}

    with pytest.raises(EmptyWindowNoFallback) as exc:
        select_window(payload, "morning", now)
    assert "invalid forecast data" in str(exc.value)


def test_daily_entry_without_temperatures_is_not_a_fallback(morning_now: datetime) -> None:
    payload = {"hourly": [], "daily": [{"pop": 0.4}]}
    with pytest.raises(EmptyWindowNoFallback):
        select_window(payload, "evening", morning_now)


def test_legacy_payload_ignores_window(legacy_payload: dict, morning_now: datetime) -> None:
    late = morning_now.replace(hour=20)
    morning = select_window(legacy_payload, "morning", late)
    evening = select_window(legacy_payload, "evening", late)

    assert morning.shape == "legacy"
    assert morning.date_offset == 0
    assert len(morning.samples) == 3
    assert morning.samples == evening.samples


def test_legacy_bucket_normalization(legacy_payload: dict, morning_now: datetime) -> None:
    sample = select_window(legacy_payload, "today", morning_now).samples[1]

    assert sample.precipitation == pytest.approx(4.5)
    assert sample.intensity == pytest.approx(1.5)
    assert sample.temperature == 12.0
    assert sample.wind_speed == pytest.approx(12.0)


def test_empty_legacy_list_fails(morning_now: datetime) -> None:
    with pytest.raises(EmptyWindowNoFallback):
        select_window({"list": []}, "today", morning_now)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"current": {"temp": 10.0}},
        {"hourly": [], "list": []},
        {"hourly": "soon"},
        {"hourly": [{"temp": 10.0}]},
        {"list": [{"pop": "often"}]},
    ],
)
def test_unrecognisable_payloads_are_rejected(payload: dict, morning_now: datetime) -> None:
    with pytest.raises(InvalidPayloadShape):
        select_window(payload, "today", morning_now)


def test_non_mapping_payload_is_rejected(morning_now: datetime) -> None:
    with pytest.raises(InvalidPayloadShape):
        select_window(["not", "a", "payload"], "today", morning_now)  # type: ignore[arg-type]


def test_wind_speed_units_are_converted(morning_now: datetime) -> None:
    hourly = [_hour(morning_now, 9, wind_speed=10.0)]
    sample = select_window({"hourly": hourly}, "morning", morning_now, wind_unit="ms").samples[0]

    assert sample.wind_speed == pytest.approx(36.0)
    assert wind_to_kmh(10, "mph") == pytest.approx(16.09344)
    assert wind_to_kmh(None, "ms") == 0.0
    with pytest.raises(ValueError):
        wind_to_kmh(5, "knots-per-fortnight")


def test_selection_is_idempotent(morning_now: datetime) -> None:
    payload = {"hourly": [_hour(morning_now, hour, pop=0.3) for hour in range(6, 12)]}
    assert select_window(payload, "morning", morning_now) == select_window(payload, "morning", morning_now)


def test_hourly_timestamps_are_local_to_now() -> None:
    offset = timezone(timedelta(hours=2))
    now = datetime(2026, 10, 18, 7, 0, tzinfo=offset)
    # 04:30 UTC is 06:30 local.
    dt = int(datetime(2026, 10, 18, 4, 30, tzinfo=timezone.utc).timestamp())
    selection = select_window({"hourly": [{"dt": dt}]}, "morning", now)

    assert selection.samples[0].hour == 6


def test_null_condition_fields_fall_back_to_clear(morning_now: datetime) -> None:
    hourly = [_hour(morning_now, 8, pop=0.1, weather=[{"main": None, "description": None}])]
    selection = select_window({"hourly": hourly}, "morning", morning_now)
    sample = selection.samples[0]

    assert sample.condition is None
    assert sample.description == ""
    assert aggregate(selection.samples).condition == "Clear"


def test_null_current_description_is_tolerated(morning_now: datetime) -> None:
    payload = {
        "current": {"weather": [{"main": "Clouds", "description": None}]},
        "hourly": [_hour(morning_now, 9, weather=[])],
    }
    selection = select_window(payload, "morning", morning_now)

    assert selection.fallback_condition == ("Clouds", "")


def test_out_of_range_timestamp_is_invalid_payload(morning_now: datetime) -> None:
    with pytest.raises(InvalidPayloadShape):
        select_window({"hourly": [{"dt": 10**13}]}, "morning", morning_now)


def test_out_of_range_legacy_timestamp_is_invalid_payload(morning_now: datetime) -> None:
    with pytest.raises(InvalidPayloadShape):
        select_window({"list": [{"dt": 10**13, "pop": 0.5}]}, "morning", morning_now)
