"""
Tests for destination geocoding service.
"""
import pytest
from unittest.mock import AsyncMock, patch, MagicMock

import httpx

from src.config import Settings
from src.infrastructure.geocoding import (
    GeocodingService,
    GeocodingResult,
)


def mock_get(mock_client_class, payload):
    mock_client = AsyncMock()
    mock_client_class.return_value.__aenter__.return_value = mock_client
    mock_response_obj = MagicMock()
    mock_response_obj.json.return_value = payload
    mock_response_obj.raise_for_status.return_value = None
    mock_client.get.return_value = mock_response_obj
    return mock_client


class TestGeocodingService:
    """Tests for GeocodingService."""

    @pytest.fixture
    def geocoding_service(self):
        """Create a geocoding service with test API key."""
        return GeocodingService(api_key="test_api_key")

    @pytest.mark.asyncio
    async def test_geocode_city_success(self, geocoding_service):
        """Test successful geocoding of a destination."""
        mock_response = [
            {
                "name": "Jaipur",
                "lat": 26.9155,
                "lon": 75.8189,
                "country": "IN",
                "state": "Rajasthan",
            }
        ]

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_get(mock_client_class, mock_response)

            result = await geocoding_service.geocode_city("Jaipur")

        assert result is not None
        assert result.city == "Jaipur"
        assert result.lat == 26.9155
        assert result.lon == 75.8189
        assert result.country == "IN"

        params = mock_client.get.call_args.kwargs["params"]
        assert params == {"q": "Jaipur", "limit": 1, "appid": "test_api_key"}

    @pytest.mark.asyncio
    async def test_geocode_city_no_results(self, geocoding_service):
        """Test geocoding returns None for an unknown destination."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_get(mock_client_class, [])

            result = await geocoding_service.geocode_city("UnknownCity12345")

        assert result is None

    @pytest.mark.asyncio
    async def test_geocode_city_missing_coordinates(self, geocoding_service):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_get(mock_client_class, [{"name": "Nowhere"}])

            result = await geocoding_service.geocode_city("Nowhere")

        assert result is None

    @pytest.mark.asyncio
    async def test_geocode_city_no_api_key(self):
        """Test geocoding without API key returns None."""
        service = GeocodingService(app_settings=Settings(openweather_api_key=None))

        with patch("httpx.AsyncClient") as mock_client_class:
            result = await service.geocode_city("Paris")

        assert result is None
        mock_client_class.assert_not_called()

    @pytest.mark.asyncio
    async def test_geocode_city_timeout(self, geocoding_service):
        """Test geocoding handles timeout gracefully."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.side_effect = httpx.TimeoutException("Timeout")

            result = await geocoding_service.geocode_city("Paris")

        assert result is None

    @pytest.mark.asyncio
    async def test_geocode_city_connection_error(self, geocoding_service):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.side_effect = httpx.ConnectError("Connection refused")

            result = await geocoding_service.geocode_city("Paris")

        assert result is None

    @pytest.mark.asyncio
    async def test_geocode_city_non_json_body(self, geocoding_service):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_get(mock_client_class, None)
            mock_client.get.return_value.json.side_effect = ValueError("Expecting value")

            result = await geocoding_service.geocode_city("Jaipur")

        assert result is None

    @pytest.mark.asyncio
    async def test_geocode_city_error_object_body(self, geocoding_service):
        """An error object instead of a result list is treated as no result."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_get(mock_client_class, {"cod": 401, "message": "Invalid API key"})

            result = await geocoding_service.geocode_city("Jaipur")

        assert result is None


class TestGeocodingResult:
    """Tests for GeocodingResult dataclass."""

    def test_geocoding_result_creation(self):
        """Test creating a GeocodingResult."""
        result = GeocodingResult(
            city="Tokyo",
            lat=35.6762,
            lon=139.6503,
            country="JP",
        )

        assert result.city == "Tokyo"
        assert result.lat == 35.6762
        assert result.lon == 139.6503
        assert result.country == "JP"
