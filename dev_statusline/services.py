"""Provider wiring.

Builds the providers with the file-backed cache store and lock shared by
every status line process. Tests build `Services` directly with in-memory
stores instead.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from . import config
from .background import BackgroundRunner, DetachedProcessRunner
from .cache import CacheStore, FileCacheStore
from .github import GitHubClient, read_token
from .lock import FileLock, Lock
from .models.settings import Settings
from .speed import SpeedProvider
from .updates import DependencyUpdateProvider
from .weather import WeatherProvider


@dataclass
class Services:
    speed: SpeedProvider
    weather: WeatherProvider | None
    updates: DependencyUpdateProvider
    clock: Callable[[], float] = field(default=time.time)


def build_services(
    settings: Settings | None = None,
    store: CacheStore | None = None,
    lock: Lock | None = None,
    runner: BackgroundRunner | None = None,
) -> Services:
    s = settings or config.settings
    store = store or FileCacheStore(s.CACHE_DIR)
    lock = lock or FileLock(s.CACHE_DIR)
    runner = runner or DetachedProcessRunner()

    speed = SpeedProvider(
        store,
        lock,
        runner,
        max_age=s.SPEED_MAX_AGE_S,
        lock_timeout=s.SPEED_LOCK_TIMEOUT_S,
        test_timeout=s.SPEEDTEST_TIMEOUT_S,
        speedtest_bin=s.SPEEDTEST_BIN,
    )
    weather = None
    if s.WEATHER_ENABLED:
        weather = WeatherProvider(
            store,
            latitude=s.WEATHER_LATITUDE,
            longitude=s.WEATHER_LONGITUDE,
            timezone=s.WEATHER_TIMEZONE,
            max_age=s.WEATHER_MAX_AGE_S,
            timeout=s.WEATHER_TIMEOUT_S,
        )
    client = GitHubClient(
        base_url=s.GITHUB_API_URL,
        token=read_token(s.GITHUB_TOKEN_FILE),
        timeout=s.GITHUB_TIMEOUT_S,
    )
    updates = DependencyUpdateProvider(
        store,
        client,
        project=s.UPDATES_PROJECT,
        search_depth=s.UPDATES_SEARCH_DEPTH,
        max_age=s.UPDATES_MAX_AGE_S,
    )
    return Services(speed=speed, weather=weather, updates=updates)
