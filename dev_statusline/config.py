"""Central configuration for dev_statusline."""

from __future__ import annotations

import logging
import os
import tempfile

from .models.settings import Settings

logger = logging.getLogger(__name__)

# San Francisco
_DEFAULT_LATITUDE = "37.790024"
_DEFAULT_LONGITUDE = "-122.400833"
_DEFAULT_TIMEZONE = "America/Los_Angeles"


def _float_env(name: str, default: float) -> float:
    """Read a positive float from the environment, falling back to ``default``."""
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    return value if value > 0 else default


def _int_env(name: str, default: int) -> int:
    return int(_float_env(name, float(default)))


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _read_settings() -> Settings:
    """Read all configuration from environment variables.

    Returns:
        Settings object with all configuration values.

    Note:
        Invalid or non-positive numeric values fall back to the defaults.
        Boolean values accept: 1/true/yes/on (case-insensitive) as True.
    """
    cache_dir = os.environ.get("STATUSLINE_CACHE_DIR") or tempfile.gettempdir()
    speedtest_bin = os.environ.get("STATUSLINE_SPEEDTEST_BIN") or None

    weather_enabled = _bool_env("STATUSLINE_WEATHER", True)
    latitude = os.environ.get("STATUSLINE_WEATHER_LATITUDE") or _DEFAULT_LATITUDE
    longitude = os.environ.get("STATUSLINE_WEATHER_LONGITUDE") or _DEFAULT_LONGITUDE
    timezone = os.environ.get("STATUSLINE_WEATHER_TIMEZONE") or _DEFAULT_TIMEZONE

    # Swift package update check
    project = os.environ.get("STATUSLINE_PROJECT") or None
    github_api = (os.environ.get("GITHUB_API_URL") or "https://api.github.com").rstrip(
        "/"
    )
    token_file = os.environ.get("STATUSLINE_GITHUB_TOKEN_FILE") or os.path.join(
        os.path.expanduser("~"), ".config", "github", "token"
    )

    return Settings(
        CACHE_DIR=cache_dir,
        SPEED_MAX_AGE_S=_float_env("STATUSLINE_SPEED_MAX_AGE_S", 3600.0),
        SPEED_LOCK_TIMEOUT_S=_float_env("STATUSLINE_SPEED_LOCK_TIMEOUT_S", 120.0),
        SPEEDTEST_TIMEOUT_S=_int_env("STATUSLINE_SPEEDTEST_TIMEOUT_S", 60),
        SPEEDTEST_BIN=speedtest_bin,
        WEATHER_ENABLED=weather_enabled,
        WEATHER_MAX_AGE_S=_float_env("STATUSLINE_WEATHER_MAX_AGE_S", 1200.0),
        WEATHER_TIMEOUT_S=_float_env("STATUSLINE_WEATHER_TIMEOUT_S", 3.0),
        WEATHER_LATITUDE=latitude,
        WEATHER_LONGITUDE=longitude,
        WEATHER_TIMEZONE=timezone,
        UPDATES_MAX_AGE_S=_float_env("STATUSLINE_UPDATES_MAX_AGE_S", 14400.0),
        UPDATES_PROJECT=project,
        UPDATES_SEARCH_DEPTH=_int_env("STATUSLINE_SEARCH_DEPTH", 5),
        GITHUB_API_URL=github_api,
        GITHUB_TOKEN_FILE=token_file,
        GITHUB_TIMEOUT_S=_float_env("STATUSLINE_GITHUB_TIMEOUT_S", 5.0),
    )


settings = _read_settings()


def validate_settings() -> None:
    """Log warnings for configuration that will quietly disable features."""
    if not os.path.isdir(settings.CACHE_DIR):
        logger.warning(
            "Cache directory %s does not exist; results will not be cached",
            settings.CACHE_DIR,
        )
    if settings.UPDATES_PROJECT and not os.path.isfile(settings.UPDATES_PROJECT):
        logger.warning(
            "STATUSLINE_PROJECT=%s is not a file; falling back to directory search",
            settings.UPDATES_PROJECT,
        )

