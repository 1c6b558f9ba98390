"""Open-Meteo weather provider with a time-only cache."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

import requests

from . import view
from .cache import CacheStore
from .models.cache import CacheRecord, is_fresh

__all__ = ["WeatherProvider", "condition_label", "format_weather", "WEATHER_KEY"]

logger = logging.getLogger(__name__)

WEATHER_KEY = "weather"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

# WMO weather interpretation codes
_CONDITIONS: dict[int, str] = {
    0: "sunny",
    1: "partly-cloudy",
    2: "partly-cloudy",
    3: "cloudy",
    45: "fog",
    48: "fog",
    # freezing drizzle (56, 57) still reads as drizzle
    51: "drizzle",
    53: "drizzle",
    55: "drizzle",
    56: "drizzle",
    57: "drizzle",
    66: "freezing-rain",
    67: "freezing-rain",
    61: "rain",
    63: "rain",
    65: "rain",
    80: "rain",
    81: "rain",
    82: "rain",
    71: "snow",
    73: "snow",
    75: "snow",
    77: "snow",
    85: "snow",
    86: "snow",
    95: "thunderstorm",
    96: "thunderstorm",
    99: "thunderstorm",
}
_DEFAULT_CONDITION = "fair"


def condition_label(code: int) -> str:
    """Map a WMO weather code to a short condition label."""
    return _CONDITIONS.get(code, _DEFAULT_CONDITION)


def format_weather(data: Any) -> str | None:
    """Format a forecast response, or return None if it is unusable.

    Example:
        >>> format_weather({
        ...     "current": {"temperature_2m": 61.4, "weather_code": 2},
        ...     "daily": {"temperature_2m_max": [66.2], "temperature_2m_min": [52.0]},
        ... })
        'partly-cloudy 61°F (66°F/52°F)'
    """
    if not isinstance(data, dict) or data.get("error"):
        return None
    try:
        current = data["current"]
        daily = data["daily"]
        temp = float(current["temperature_2m"])
        code = int(current["weather_code"])
        high = float(daily["temperature_2m_max"][0])
        low = float(daily["temperature_2m_min"][0])
    except (KeyError, IndexError, TypeError, ValueError):
        return None
    return f"{condition_label(code)} {round(temp)}°F ({round(high)}°F/{round(low)}°F)"


class WeatherProvider:
    def __init__(
        self,
        store: CacheStore,
        *,
        latitude: str,
        longitude: str,
        timezone: str,
        max_age: float = 1200.0,
        timeout: float = 3.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.latitude = latitude
        self.longitude = longitude
        self.timezone = timezone
        self.max_age = max_age
        self.timeout = timeout
        self.clock = clock

    def _params(self) -> dict[str, str]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "current": "temperature_2m,weather_code",
            "daily": "temperature_2m_max,temperature_2m_min",
            "temperature_unit": "fahrenheit",
            "timezone": self.timezone,
            "forecast_days": "1",
        }

    def fetch(self) -> str | None:
        """Fetch and format current conditions. Blocking; None on any failure."""
        try:
            resp = requests.get(
                FORECAST_URL,
                params=self._params(),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            if not resp.ok:
                logger.debug("Weather API error: HTTP %d", resp.status_code)
                return None
            return format_weather(resp.json())
        except (requests.RequestException, ValueError) as e:
            logger.debug("Weather fetch failed: %s", e)
            return None

    async def render(self) -> str:
        record = self.store.read(WEATHER_KEY)
        now = self.clock()
        if is_fresh(record, now, self.max_age) and record.payload:
            return record.payload

        text = await asyncio.to_thread(self.fetch)
        if text is None:
            return view.WEATHER_FALLBACK
        self.store.write(
            WEATHER_KEY, CacheRecord(written_at=now, fingerprint="", payload=text)
        )
        return text
