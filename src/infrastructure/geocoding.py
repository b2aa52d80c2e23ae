"""
City geocoding service using the OpenWeatherMap direct geocoding API.
Converts destination names to latitude/longitude coordinates.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from src.config import settings, Settings

logger = logging.getLogger(__name__)


@dataclass
class GeocodingResult:
    """Result from geocoding a destination name."""
    city: str
    lat: float
    lon: float
    country: str


class GeocodingService:
    """
    Service for geocoding destination names to coordinates.
    Uses OpenWeatherMap's geocoding endpoint so the weather check only
    needs a single API key.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        app_settings: Optional[Settings] = None,
    ):
        """
        Initialize geocoding service.

        Args:
            api_key: OpenWeatherMap API key (defaults to settings)
            app_settings: Settings override (for testing)
        """
        s = app_settings or settings
        self.api_key = api_key or s.openweather_api_key
        self.base_url = s.openweather_geocoding_url
        self.timeout_seconds = s.weather_timeout_seconds

    async def geocode_city(self, city: str) -> Optional[GeocodingResult]:
        """
        Geocode a destination name to coordinates.

        Args:
            city: Destination name (e.g., "Jaipur", "Paris")

        Returns:
            GeocodingResult with lat/lon if successful, None otherwise
        """
        if not self.api_key:
            logger.warning("OpenWeather API key not configured, cannot geocode destination")
            return None

        params = {
            "q": city,
            "limit": 1,
            "appid": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                results = response.json()

            if not results:
                logger.warning(f"No geocoding results for destination: {city}")
                return None

            result = results[0]
            lat = result.get("lat")
            lon = result.get("lon")

            if lat is None or lon is None:
                logger.warning(f"Missing coordinates in geocoding result for: {city}")
                return None

            logger.info(f"Geocoded '{city}' to ({lat}, {lon})")

            return GeocodingResult(
                city=result.get("name", city),
                lat=lat,
                lon=lon,
                country=result.get("country", ""),
            )

        except httpx.TimeoutException:
            logger.warning(f"Geocoding API timeout for destination: {city}")
            return None
        except httpx.HTTPStatusError as e:
            logger.warning(f"Geocoding API HTTP error: {e.response.status_code}")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding API transport error: {e}")
            return None
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning(f"Malformed geocoding response for {city}: {e!r}")
            return None
