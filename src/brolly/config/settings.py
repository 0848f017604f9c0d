"""
Settings/secret loading helpers.
"""

from __future__ import annotations

import os
from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv


def _load_dotenv() -> None:
    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(dotenv_path=cwd_env, override=True)


_load_dotenv()

# Older deployments store the key as WEATHER_API_KEY.
_KEY_ALIASES = ("OPENWEATHERMAP_API_KEY", "WEATHER_API_KEY")


class Secrets(BaseModel):
    """
    Container for API keys loaded from environment variables.

    Attributes:
        openweathermap_api_key: Key for the OpenWeatherMap One Call and geocoding APIs.
    """
    openweathermap_api_key: Optional[str] = Field(default=None, alias="OPENWEATHERMAP_API_KEY")

    model_config = {
        "populate_by_name": True,
    }


@lru_cache(maxsize=1)
def get_secrets() -> Secrets:
    """
    Load secrets from environment/.env exactly once.

    Returns:
        A Secrets object populated from environment variables.
    """
    key = next((os.getenv(name) for name in _KEY_ALIASES if os.getenv(name)), None)
    return Secrets(openweathermap_api_key=key)
