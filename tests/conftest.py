from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def morning_now() -> datetime:
    """08:15 UTC on a fixed day, inside the morning window."""
    return datetime(2026, 10, 18, 8, 15, tzinfo=timezone.utc)


@pytest.fixture
def legacy_payload() -> dict:
    """Three 3-hour buckets in the 5 day / 3 hour forecast shape (wind in km/h)."""
    return {
        "cod": "200",
        "list": [
            {
                "dt": 1792303200,
                "main": {"temp": 14.0},
                "pop": 0.2,
                "wind": {"speed": 10.0},
                "weather": [{"main": "Clouds", "description": "overcast clouds"}],
            },
            {
                "dt": 1792314000,
                "main": {"temp": 12.0},
                "pop": 0.8,
                "rain": {"3h": 4.5},
                "wind": {"speed": 12.0},
                "weather": [{"main": "Rain", "description": "moderate rain"}],
            },
            {
                "dt": 1792324800,
                "main": {"temp": 10.0},
                "pop": 0.6,
                "rain": {"3h": 1.2},
                "wind": {"speed": 8.0},
                "weather": [{"main": "Rain", "description": "light rain"}],
            },
        ],
    }
