"""
Configuration helpers for the brolly toolkit.
"""

from .models import CheckConfig, ConfigError, build_config, load_config
from .settings import Secrets, get_secrets

__all__ = ["CheckConfig", "ConfigError", "build_config", "load_config", "Secrets", "get_secrets"]
