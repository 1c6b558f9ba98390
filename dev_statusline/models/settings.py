"""Configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Settings:
    """Configuration settings for dev_statusline."""

    CACHE_DIR: str
    SPEED_MAX_AGE_S: float
    SPEED_LOCK_TIMEOUT_S: float
    SPEEDTEST_TIMEOUT_S: int
    SPEEDTEST_BIN: str | None
    WEATHER_ENABLED: bool
    WEATHER_MAX_AGE_S: float
    WEATHER_TIMEOUT_S: float
    WEATHER_LATITUDE: str
    WEATHER_LONGITUDE: str
    WEATHER_TIMEZONE: str
    UPDATES_MAX_AGE_S: float
    UPDATES_PROJECT: str | None
    UPDATES_SEARCH_DEPTH: int
    GITHUB_API_URL: str
    GITHUB_TOKEN_FILE: str
    GITHUB_TIMEOUT_S: float
