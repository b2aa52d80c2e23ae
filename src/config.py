"""
Configuration management for the itinerary planning backend.
Uses Pydantic Settings to load configuration from environment variables.
"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # LLM Provider Selection
    llm_provider: str = Field(
        default="openrouter",
        description="LLM provider to use: 'openrouter' or 'anthropic'"
    )

    # OpenRouter - OpenAI-compatible API
    openrouter_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouter API key"
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL for the OpenRouter API"
    )
    drafting_model: str = Field(
        default="meta-llama/llama-3.2-3b-instruct:free",
        description="Model used to draft day-by-day place recommendations"
    )

    # Anthropic Claude (alternative provider)
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key for Claude"
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Base URL for Anthropic API"
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-20241022",
        description="Claude model to use for drafting"
    )

    llm_timeout_seconds: int = Field(
        default=30,
        description="Timeout for a single LLM call"
    )
    drafting_max_tokens: int = Field(
        default=2500,
        description="Maximum tokens for the drafted itinerary JSON"
    )
    drafting_temperature: float = Field(
        default=0.4,
        description="Sampling temperature for itinerary drafting"
    )

    # Google Maps Platform / Places API
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API key for Places API"
    )
    google_places_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place/textsearch/json",
        description="Base URL for Google Places Text Search API"
    )
    google_place_details_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place/details/json",
        description="Base URL for Google Places Details API"
    )
    google_place_photo_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place/photo",
        description="Base URL for Google Places Photo API"
    )
    google_places_timeout_seconds: int = Field(
        default=10,
        description="HTTP timeout for Google Places API calls"
    )
    google_places_search_radius_meters: int = Field(
        default=5000,
        description="Search radius when a location bias is given"
    )

    # OpenWeatherMap
    openweather_api_key: Optional[str] = Field(
        default=None,
        description="OpenWeatherMap API key (weather safety check is skipped without it)"
    )
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="Base URL for OpenWeatherMap data API"
    )
    openweather_geocoding_url: str = Field(
        default="https://api.openweathermap.org/geo/1.0/direct",
        description="OpenWeatherMap direct geocoding endpoint"
    )
    weather_timeout_seconds: int = Field(
        default=5,
        description="HTTP timeout for weather and geocoding calls"
    )

    # =========================================================================
    # Pipeline settings
    # =========================================================================

    enrichment_batch_size: int = Field(
        default=5,
        description="Concurrent place enrichment calls per batch"
    )
    max_draft_days: int = Field(
        default=5,
        description="Maximum days requested from the LLM (longer trips reuse drafted days)"
    )
    default_total_budget: float = Field(
        default=10000,
        description="Trip budget assumed when the request does not provide one"
    )
    max_ranked_places: int = Field(
        default=50,
        description="Number of places kept after ranking"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")


# Global settings instance
settings = Settings()
