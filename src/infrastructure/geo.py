"""
Geographic helpers shared by the assembler and candidate sources.
"""
import math
from typing import Optional, Sequence

from src.domain.models import Coordinates


# Earth radius in km for haversine calculations
EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine distance between two points in km."""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def path_distance_km(points: Sequence[Optional[Coordinates]]) -> float:
    """
    Sum of hop distances along a path, skipping points without coordinates.
    Rounded to one decimal.
    """
    located = [p for p in points if p is not None]
    total = 0.0
    for prev, current in zip(located, located[1:]):
        total += haversine_distance_km(prev.lat, prev.lng, current.lat, current.lng)
    return round(total, 1)
