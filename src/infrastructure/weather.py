"""
Weather Source abstraction and OpenWeatherMap implementation.
Aggregates 3-hourly forecast entries into per-day summaries.
"""
import datetime as dt
import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Optional

import httpx

from src.config import settings, Settings
from src.domain.models import ForecastDay, Severity, WeatherAdvisory

logger = logging.getLogger(__name__)


# Thunderstorm, heavy rain, freezing rain, heavy snow and tornado condition codes
EXTREME_WEATHER_CODES = frozenset({202, 212, 221, 232, 504, 511, 602, 622, 781})

# OpenWeatherMap returns one entry every 3 hours
ENTRIES_PER_DAY = 8


class WeatherSource(ABC):
    """Abstract base class for weather forecast sources."""

    @abstractmethod
    async def get_forecast(self, lat: float, lng: float, days: int = 5) -> list[ForecastDay]:
        """
        Fetch a daily forecast.

        Returns:
            One ForecastDay per calendar day, oldest first (may be empty)
        """
        pass


def _dominant_code(codes: list[int]) -> int:
    """Pick the most severe condition code of a day, else the most frequent one."""
    for code in codes:
        if code in EXTREME_WEATHER_CODES:
            return code
    return Counter(codes).most_common(1)[0][0]


def aggregate_daily(entries: list[dict], days: int) -> list[ForecastDay]:
    """Group raw 3-hourly forecast entries into daily summaries."""
    grouped: dict[dt.date, list[dict]] = {}
    for entry in entries:
        day = dt.datetime.fromtimestamp(entry["dt"], tz=dt.timezone.utc).date()
        grouped.setdefault(day, []).append(entry)

    forecast = []
    for day in sorted(grouped)[:days]:
        items = grouped[day]
        temps = [item["main"]["temp"] for item in items]
        codes = [item["weather"][0]["id"] for item in items]
        code = _dominant_code(codes)
        description = next(
            item["weather"][0].get("description", "")
            for item in items
            if item["weather"][0]["id"] == code
        )
        forecast.append(
            ForecastDay(
                date=day,
                temp_min=min(temps),
                temp_max=max(temps),
                condition_code=code,
                description=description,
                wind_speed=max((item.get("wind") or {}).get("speed", 0) for item in items),
            )
        )
    return forecast


class OpenWeatherMapSource(WeatherSource):
    """
    Weather source backed by the OpenWeatherMap 5-day forecast API.
    Returns an empty forecast when the key is missing or the call fails.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        app_settings: Optional[Settings] = None,
    ):
        s = app_settings or settings
        self.api_key = api_key or s.openweather_api_key
        self.base_url = s.openweather_base_url
        self.timeout_seconds = s.weather_timeout_seconds

    async def get_forecast(self, lat: float, lng: float, days: int = 5) -> list[ForecastDay]:
        if not self.api_key:
            logger.warning("OpenWeather API key not configured, skipping forecast")
            return []

        params = {
            "lat": lat,
            "lon": lng,
            "appid": self.api_key,
            "units": "metric",
            "cnt": days * ENTRIES_PER_DAY,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(f"{self.base_url}/forecast", params=params)
                response.raise_for_status()
                data = response.json()
            return aggregate_daily(data.get("list", []), days)
        except httpx.TimeoutException:
            logger.warning(f"Weather API timeout after {self.timeout_seconds}s")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Weather API HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Weather API transport error: {e}")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning(f"Malformed weather API response: {e!r}")

        return []


def weather_recommendation(day: ForecastDay) -> WeatherAdvisory:
    """Turn a daily forecast into a short advisory."""
    group = day.condition_code // 100

    # 2xx thunderstorm, 3xx drizzle, 5xx rain
    if group in (2, 3, 5):
        return WeatherAdvisory(
            date=day.date,
            alert="Rain expected",
            recommendation="Consider indoor activities or bring an umbrella",
            severity=Severity.MEDIUM,
        )
    if day.condition_code == 800:
        return WeatherAdvisory(
            date=day.date,
            alert="Clear weather",
            recommendation="Perfect for outdoor activities",
            severity=Severity.LOW,
        )
    if day.temp_max > 35:
        return WeatherAdvisory(
            date=day.date,
            alert="High temperature",
            recommendation="Stay hydrated and avoid prolonged sun exposure",
            severity=Severity.MEDIUM,
        )
    if day.temp_min < 10:
        return WeatherAdvisory(
            date=day.date,
            alert="Cold weather",
            recommendation="Dress warmly and consider indoor activities",
            severity=Severity.LOW,
        )
    return WeatherAdvisory(
        date=day.date,
        alert="Normal conditions",
        recommendation="Weather is suitable for most activities",
        severity=Severity.LOW,
    )
