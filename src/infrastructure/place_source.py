"""
Candidate Source abstraction and implementations.
Supplies raw place candidates from Google Places, with deterministic
offline data when the API is not configured or unreachable.
"""
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from src.config import settings, Settings
from src.domain.models import CandidatePlace, Coordinates

logger = logging.getLogger(__name__)


# Placeholder images used when a place has no photos
OFFLINE_IMAGES = [
    "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=400",
    "https://images.unsplash.com/photo-1507525428034-b723cf961d3e?w=400",
    "https://images.unsplash.com/photo-1524492412937-b28074a5d7da?w=400",
    "https://images.unsplash.com/photo-1544735716-392fe2489ffa?w=400",
]

# Default center for offline coordinates
OFFLINE_CENTER = Coordinates(lat=12.9716, lng=77.5946)

DETAILS_FIELDS = (
    "place_id,name,formatted_address,geometry,rating,types,photos,"
    "price_level,wheelchair_accessible_entrance"
)


class CandidateSource(ABC):
    """Abstract base class for candidate place sources."""

    @abstractmethod
    async def search_places(
        self,
        query: str,
        location: Optional[Coordinates] = None,
    ) -> list[CandidatePlace]:
        """
        Search places matching a free-text query.

        Args:
            query: Free-text search (e.g. "Hawa Mahal Jaipur")
            location: Optional location bias

        Returns:
            List of candidates, best match first (may be empty)
        """
        pass

    @abstractmethod
    async def get_place_details(self, place_id: str) -> Optional[CandidatePlace]:
        """Fetch a single place by id, or None."""
        pass


def _stable_digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class OfflinePlaceSource(CandidateSource):
    """
    Deterministic stand-in data for development and degraded operation.
    The same query always yields the same candidate.
    """

    async def search_places(
        self,
        query: str,
        location: Optional[Coordinates] = None,
    ) -> list[CandidatePlace]:
        digest = _stable_digest(query)
        name = " ".join(query.split()[:3]) or "Local Attraction"
        seed = int(digest[:8], 16)
        center = location or OFFLINE_CENTER

        return [
            CandidatePlace(
                id=f"offline-{digest[:12]}",
                name=name,
                address=f"{name}, Tourist Area",
                coordinates=Coordinates(
                    lat=center.lat + (seed % 1000) / 10000,
                    lng=center.lng + (seed // 1000 % 1000) / 10000,
                ),
                rating=round(4.2 + (seed % 7) / 10, 1),
                categories=["tourist_attraction", "point_of_interest"],
                photos=[OFFLINE_IMAGES[seed % len(OFFLINE_IMAGES)]],
            )
        ]

    async def get_place_details(self, place_id: str) -> Optional[CandidatePlace]:
        return CandidatePlace(
            id=place_id,
            name="Example Tourist Attraction",
            address="123 Main Street",
            coordinates=OFFLINE_CENTER,
            rating=4.5,
            categories=["tourist_attraction"],
            wheelchair_accessible=True,
        )


class GooglePlacesSource(CandidateSource):
    """
    Candidate source backed by Google Places Text Search and Details.
    Falls back to offline data when the key is missing or a call fails.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        app_settings: Optional[Settings] = None,
        fallback: Optional[CandidateSource] = None,
    ):
        """
        Initialize Google Places source.

        Args:
            api_key: Google Maps API key (defaults to settings)
            app_settings: Settings override (for testing)
            fallback: Source used on missing key / failures
        """
        s = app_settings or settings
        self.api_key = api_key or s.google_maps_api_key
        self.search_url = s.google_places_base_url
        self.details_url = s.google_place_details_base_url
        self.photo_url = s.google_place_photo_base_url
        self.radius_meters = s.google_places_search_radius_meters
        self.timeout_seconds = s.google_places_timeout_seconds
        self.fallback = fallback or OfflinePlaceSource()

    def _photo_urls(self, place: dict) -> list[str]:
        return [
            f"{self.photo_url}?maxwidth=400&photoreference={photo['photo_reference']}&key={self.api_key}"
            for photo in place.get("photos", [])
            if photo.get("photo_reference")
        ]

    def _parse_place(self, place: dict) -> Optional[CandidatePlace]:
        """Parse a single place from a Google Places API payload."""
        try:
            location = place.get("geometry", {}).get("location", {})
            coordinates = None
            if location.get("lat") is not None and location.get("lng") is not None:
                coordinates = Coordinates(lat=location["lat"], lng=location["lng"])

            return CandidatePlace(
                id=place["place_id"],
                name=place["name"],
                address=place.get("formatted_address", place.get("vicinity", "")),
                coordinates=coordinates,
                rating=place.get("rating") or 0.0,
                categories=place.get("types", []),
                photos=self._photo_urls(place),
                wheelchair_accessible=bool(place.get("wheelchair_accessible_entrance", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse place result: {e}")
            return None

    async def search_places(
        self,
        query: str,
        location: Optional[Coordinates] = None,
    ) -> list[CandidatePlace]:
        """Search Google Places, degrading to offline data."""
        if not self.api_key:
            logger.warning("Google Maps API key not configured, using offline place data")
            return await self.fallback.search_places(query, location)

        params = {"query": query, "key": self.api_key}
        if location:
            params["location"] = f"{location.lat},{location.lng}"
            params["radius"] = self.radius_meters

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(self.search_url, params=params)
                response.raise_for_status()
                data = response.json()

            status = data.get("status", "UNKNOWN")
            if status == "ZERO_RESULTS":
                logger.info(f"No results from Google Places for query: {query}")
                return []
            if status != "OK":
                logger.warning(f"Google Places API returned status: {status}")
                return await self.fallback.search_places(query, location)

            results = []
            for place in data.get("results", []):
                parsed = self._parse_place(place)
                if parsed:
                    results.append(parsed)
            return results

        except httpx.TimeoutException:
            logger.warning(f"Google Places API timeout after {self.timeout_seconds}s")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google Places API HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Google Places API transport error: {e}")

        return await self.fallback.search_places(query, location)

    async def get_place_details(self, place_id: str) -> Optional[CandidatePlace]:
        """Fetch place details, degrading to offline data."""
        if not self.api_key:
            return await self.fallback.get_place_details(place_id)

        params = {"place_id": place_id, "fields": DETAILS_FIELDS, "key": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(self.details_url, params=params)
                response.raise_for_status()
                data = response.json()

            result = data.get("result")
            if data.get("status") != "OK" or not result:
                logger.warning(f"Google Place Details returned status: {data.get('status')}")
                return await self.fallback.get_place_details(place_id)

            result.setdefault("place_id", place_id)
            return self._parse_place(result)

        except httpx.TimeoutException:
            logger.warning(f"Google Place Details timeout after {self.timeout_seconds}s")
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google Place Details HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Google Place Details transport error: {e}")

        return await self.fallback.get_place_details(place_id)
