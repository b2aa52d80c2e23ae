"""
Health check endpoint.
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from src.config import settings
from src.domain.schemas import HealthResponse

router = APIRouter(tags=["health"])

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness and which upstream integrations are configured."""
    if settings.llm_provider == "anthropic":
        drafting_enabled = bool(settings.anthropic_api_key)
    else:
        drafting_enabled = bool(settings.openrouter_api_key)

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=API_VERSION,
        drafting_enabled=drafting_enabled,
        places_api_configured=bool(settings.google_maps_api_key),
        weather_api_configured=bool(settings.openweather_api_key),
    )
