"""
Request/Response schemas for API endpoints.
These schemas define the contract between the web client and the backend.
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from src.domain.models import (
    Alternative,
    CandidatePlace,
    ContextAnalysis,
    Day,
    Fallback,
    PreferenceVector,
    Restriction,
    SafetyStatus,
    SafetyWarning,
    ScoredPlace,
    TravelGroupType,
    VisitedPlace,
)


def _split_interests(value):
    """Accept interests as a list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class TripWindowMixin(BaseModel):
    """Destination and date range shared by generation and validation requests."""
    destination: str = Field(description="Destination city", min_length=1, max_length=100)
    start_date: date = Field(description="Trip start date")
    end_date: date = Field(description="Trip end date (inclusive)")

    @field_validator("destination")
    @classmethod
    def destination_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("destination must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class GenerateItineraryRequest(TripWindowMixin):
    """Request schema for generating an itinerary."""
    total_budget: Optional[float] = Field(default=None, ge=0, description="Total trip budget")
    travel_group: TravelGroupType = Field(default=TravelGroupType.SOLO, description="Travel group selector")
    accessibility_needs: Optional[str] = Field(
        default=None,
        description="Accessibility selector (e.g. 'wheelchair', 'mobility')"
    )
    interests: list[str] = Field(default_factory=list, description="Free-text interests")
    preferences: Optional[PreferenceVector] = Field(
        default=None,
        description="Traveler's preference vector (neutral defaults if omitted)"
    )

    @field_validator("interests", mode="before")
    @classmethod
    def normalize_interests(cls, value):
        return _split_interests(value)

    class Config:
        json_schema_extra = {
            "example": {
                "destination": "Jaipur",
                "start_date": "2025-11-10",
                "end_date": "2025-11-12",
                "total_budget": 15000,
                "travel_group": "family-young",
                "accessibility_needs": "none",
                "interests": "history, food, culture",
                "preferences": {
                    "travel_pace": "moderate",
                    "budget_level": "budget",
                    "interests": {"history": 0.9, "food": 0.8},
                },
            }
        }


class SafetyValidationRequest(TripWindowMixin):
    """Request schema for validating an existing plan."""
    total_budget: Optional[float] = Field(default=None, ge=0)
    travel_group: TravelGroupType = Field(default=TravelGroupType.SOLO)
    accessibility_needs: Optional[str] = Field(default=None)
    visited_places: list[VisitedPlace] = Field(default_factory=list)
    days: list[Day] = Field(default_factory=list, description="Days to validate")


class SafetyValidationResponse(BaseModel):
    """Response schema for safety validation."""
    approved: bool
    safety_score: int
    status: SafetyStatus
    icon: str
    color: str
    summary: str
    context_analysis: ContextAnalysis
    warnings: list[SafetyWarning]
    restrictions: list[Restriction]
    alternatives: list[Alternative]
    fallbacks: list[Fallback]


class RankPlacesRequest(BaseModel):
    """Request schema for ranking candidate places."""
    preferences: PreferenceVector = Field(default_factory=PreferenceVector)
    places: list[CandidatePlace] = Field(description="Candidates to rank")


class RankPlacesResponse(BaseModel):
    """Response schema for ranked candidates."""
    ranked: list[ScoredPlace]
    total_candidates: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime
    version: str
    drafting_enabled: bool
    places_api_configured: bool
    weather_api_configured: bool
