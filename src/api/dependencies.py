"""
Service wiring for the API layer.
Services are built once per process in the app lifespan and handed to
endpoints through FastAPI dependencies.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from src.config import settings, Settings
from src.application.context_safety import ContextSafetyEngine
from src.application.itinerary_assembler import ItineraryAssembler
from src.application.orchestrator import ItineraryOrchestrator
from src.application.personalization import PersonalizationEngine
from src.application.place_recommendations import PlaceRecommendationService
from src.infrastructure.geocoding import GeocodingService
from src.infrastructure.llm_client import get_drafting_llm_client
from src.infrastructure.place_source import GooglePlacesSource
from src.infrastructure.weather import OpenWeatherMapSource


@dataclass
class Services:
    """Process-wide service instances."""
    personalization: PersonalizationEngine
    safety: ContextSafetyEngine
    orchestrator: ItineraryOrchestrator


def build_services(app_settings: Optional[Settings] = None) -> Services:
    """Construct every service from settings."""
    s = app_settings or settings

    personalization = PersonalizationEngine(max_ranked=s.max_ranked_places)
    safety = ContextSafetyEngine(
        weather_source=OpenWeatherMapSource(app_settings=s),
        geocoder=GeocodingService(app_settings=s),
    )
    orchestrator = ItineraryOrchestrator(
        place_source=GooglePlacesSource(app_settings=s),
        recommender=PlaceRecommendationService(
            llm_client=get_drafting_llm_client(s),
            app_settings=s,
        ),
        assembler=ItineraryAssembler(),
        personalization=personalization,
        safety=safety,
        app_settings=s,
    )

    return Services(
        personalization=personalization,
        safety=safety,
        orchestrator=orchestrator,
    )


def get_services(request: Request) -> Services:
    """Services built at startup."""
    return request.app.state.services


def get_orchestrator(request: Request) -> ItineraryOrchestrator:
    return get_services(request).orchestrator


def get_safety_engine(request: Request) -> ContextSafetyEngine:
    return get_services(request).safety


def get_personalization_engine(request: Request) -> PersonalizationEngine:
    return get_services(request).personalization
