"""
Core domain models for the itinerary planning backend.
All models use Pydantic v2 for type safety and validation.
"""
import datetime as dt
from typing import Annotated, Optional, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums for constrained values
class TravelPace(str, Enum):
    """How packed the traveler likes a day to be."""
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


class BudgetLevel(str, Enum):
    """Budget level for the trip."""
    BUDGET = "budget"
    MID_RANGE = "mid-range"
    LUXURY = "luxury"


class MobilityLevel(str, Enum):
    """Traveler mobility."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InterestKey(str, Enum):
    """Interest dimensions of the preference vector."""
    CULTURE = "culture"
    NATURE = "nature"
    ADVENTURE = "adventure"
    FOOD = "food"
    HISTORY = "history"
    SHOPPING = "shopping"
    NIGHTLIFE = "nightlife"
    RELAXATION = "relaxation"
    PHOTOGRAPHY = "photography"
    SUSTAINABILITY = "sustainability"


class Severity(str, Enum):
    """Severity level for safety warnings."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SafetyStatus(str, Enum):
    """Display band for a safety score."""
    SAFE = "SAFE"
    MODERATE = "MODERATE"
    CAUTION = "CAUTION"
    UNSAFE = "UNSAFE"


class ItineraryStatus(str, Enum):
    """Lifecycle of a stored itinerary."""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


# Preference vector

class AccessibilityPreferences(BaseModel):
    """Accessibility needs of the traveler."""
    wheelchair_friendly: bool = Field(default=False, description="Requires wheelchair access")
    dietary_restrictions: list[str] = Field(default_factory=list, description="e.g. vegetarian, halal")
    language_preferences: list[str] = Field(default_factory=list, description="Preferred languages")
    mobility_level: MobilityLevel = Field(default=MobilityLevel.HIGH, description="Mobility level")


class VisitedPlace(BaseModel):
    """A place the traveler has already been to."""
    place_id: Optional[str] = Field(default=None, description="Source place id")
    place_name: str = Field(description="Place name")
    visit_date: Optional[dt.date] = Field(default=None, description="Date of visit")
    rating: Optional[float] = Field(default=None, ge=0, le=5, description="Traveler's rating")


class FeedbackEntry(BaseModel):
    """Feedback left on a past itinerary."""
    itinerary_id: str
    feedback: str = ""
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    timestamp: Optional[dt.datetime] = None


class PreferenceVector(BaseModel):
    """
    Structured record of a traveler's preferences.
    Unset pace/budget are None and fall back to neutral sub-scores.
    """
    travel_pace: Optional[TravelPace] = Field(default=None, description="Preferred pace (unset = neutral)")
    budget_level: Optional[BudgetLevel] = Field(default=None, description="Budget level (unset = neutral)")
    group_size: int = Field(default=1, ge=1, description="Number of travelers")
    interests: dict[InterestKey, Annotated[float, Field(ge=0, le=1)]] = Field(
        default_factory=dict,
        description="Interest weights in [0, 1]; missing keys are unknown"
    )
    accessibility: AccessibilityPreferences = Field(default_factory=AccessibilityPreferences)
    visited_places: list[VisitedPlace] = Field(default_factory=list)
    feedback_history: list[FeedbackEntry] = Field(default_factory=list)


# Candidates and scoring

class Coordinates(BaseModel):
    lat: float
    lng: float


class CandidatePlace(BaseModel):
    """A point of interest returned by a candidate source, not yet scheduled."""
    id: str = Field(description="Source place id")
    name: str = Field(description="Place name")
    address: str = Field(default="", description="Formatted address")
    coordinates: Optional[Coordinates] = Field(default=None)
    rating: float = Field(default=0.0, description="Rating (0-5)")
    categories: list[str] = Field(default_factory=list, description="Source categories / types")
    photos: list[str] = Field(default_factory=list, description="Photo URLs")
    estimated_cost: Optional[float] = Field(default=None, ge=0, description="Estimated cost per person")
    estimated_duration: Optional[int] = Field(default=None, ge=0, description="Estimated visit duration in minutes")
    sustainability_score: Optional[float] = Field(default=None, ge=0, le=10, description="Sustainability (0-10)")
    wheelchair_accessible: bool = Field(default=False)
    dietary_options: list[str] = Field(default_factory=list)


class ScoreBreakdown(BaseModel):
    """Per-factor sub-scores, each in [0, 1]."""
    interest_match: float = Field(ge=0, le=1)
    accessibility_match: float = Field(ge=0, le=1)
    budget_match: float = Field(ge=0, le=1)
    sustainability_match: float = Field(ge=0, le=1)
    novelty_score: float = Field(ge=0, le=1)
    time_optimization: float = Field(ge=0, le=1)


class ScoreResult(BaseModel):
    """Weighted score of one candidate."""
    final_score: float = Field(ge=0, le=1)
    breakdown: ScoreBreakdown
    reasoning: str = ""


class ScoredPlace(BaseModel):
    """A candidate place with its score attached."""
    place: CandidatePlace
    score: ScoreResult


# Itinerary

class Activity(BaseModel):
    """A candidate place placed into a schedule slot."""
    place_id: str
    place_name: str
    city: Optional[str] = None
    category: str = "attraction"
    description: str = ""
    start_time: str = Field(description="HH:MM (may exceed 24:00, no wraparound)")
    end_time: str = Field(description="HH:MM (may exceed 24:00, no wraparound)")
    duration: int = Field(default=120, ge=0, description="Minutes")
    cost: float = Field(default=0, ge=0)
    coordinates: Optional[Coordinates] = None
    photos: list[str] = Field(default_factory=list)
    rating: float = 0.0
    tips: str = ""
    best_time: str = "Anytime"
    sustainability_score: float = 7
    accessibility_score: float = 8
    ai_reasoning: str = ""
    order: int = Field(ge=1)


class Day(BaseModel):
    """One day of the itinerary."""
    day_number: int = Field(ge=1)
    date: dt.date
    theme: str = ""
    activities: list[Activity] = Field(default_factory=list)
    total_cost: float = 0
    total_distance: float = Field(default=0, description="Kilometers between consecutive activities")


class SafetyWarning(BaseModel):
    """A non-blocking safety observation."""
    type: str
    message: str
    severity: Severity
    place: Optional[str] = None
    date: Optional[dt.date] = None


class Restriction(BaseModel):
    """A hard safety violation that blocks automatic approval."""
    type: str
    message: str
    place: Optional[str] = None
    dates: list[dt.date] = Field(default_factory=list)


class Alternative(BaseModel):
    """A corrective suggestion emitted by a check."""
    suggestion: str
    action: str


class Fallback(BaseModel):
    """A bundle of alternative activity categories for one restriction."""
    type: str
    message: str
    suggestions: list[str]


class Itinerary(BaseModel):
    """Generated itinerary with its safety verdict attached."""
    destination: str
    start_date: dt.date
    end_date: dt.date
    days: list[Day] = Field(default_factory=list)
    total_budget: float = 0
    ai_explanation: str = ""
    safety_score: int = Field(default=100, ge=0, le=100)
    safety_status: SafetyStatus = SafetyStatus.SAFE
    safety_approved: bool = True
    safety_warnings: list[SafetyWarning] = Field(default_factory=list)
    safe_fallbacks: list[Fallback] = Field(default_factory=list)
    status: ItineraryStatus = ItineraryStatus.DRAFT


# Safety context

class TravelGroup(BaseModel):
    """Structured group composition consumed by the safety checks."""
    has_children: bool = False
    has_elderly: bool = False
    has_mobility_issues: bool = False
    size: int = Field(default=1, ge=1)
    accessibility_type: str = "none"


class UserContext(BaseModel):
    """Everything the safety engine knows about the trip and traveler."""
    destination: str
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    total_budget: Optional[float] = None
    travel_group: Optional[TravelGroup] = None
    visited_places: list[VisitedPlace] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)


class WeatherAdvisory(BaseModel):
    """Traveler-facing advice for one forecast day."""
    date: dt.date
    alert: str
    recommendation: str
    severity: Severity


class ContextAnalysis(BaseModel):
    """Situational summary of a trip; informational only."""
    trip_duration: int = 0
    budget_category: str = "mid-range"
    time_available: str = "full-day"
    seasonal_context: str = ""
    group_type: str = "general"
    special_needs: list[str] = Field(default_factory=list)
    weather_advisories: list[WeatherAdvisory] = Field(default_factory=list)


class SafetyValidationResult(BaseModel):
    """Outcome of the context and safety validation."""
    approved: bool = True
    safety_score: int = Field(default=100, ge=0, le=100)
    warnings: list[SafetyWarning] = Field(default_factory=list)
    restrictions: list[Restriction] = Field(default_factory=list)
    safe_alternatives: list[Alternative] = Field(default_factory=list)
    context_analysis: ContextAnalysis = Field(default_factory=ContextAnalysis)


class SafetyStatusSummary(BaseModel):
    """Display-ready summary of a validation result."""
    status: SafetyStatus
    score: int
    color: str
    icon: str
    warning_count: int
    restriction_count: int
    summary: str


class CheckOutcome(BaseModel):
    """Result of one safety check that ran to completion."""
    check: str
    safe: bool = True
    warnings: list[SafetyWarning] = Field(default_factory=list)
    restrictions: list[Restriction] = Field(default_factory=list)
    alternatives: list[Alternative] = Field(default_factory=list)
    advisories: list[WeatherAdvisory] = Field(default_factory=list)
    deduction: int = 0


class Degraded(BaseModel):
    """A safety check that could not complete."""
    check: str
    reason: str


CheckResult = Union[CheckOutcome, Degraded]


# Weather

class ForecastDay(BaseModel):
    """Daily aggregate of a weather forecast."""
    date: dt.date
    temp_min: float
    temp_max: float
    condition_code: int
    description: str = ""
    wind_speed: float = 0.0


# AI draft

class DraftPlace(BaseModel):
    """A place proposed by the drafting LLM."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    place_name: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    importance: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    estimated_cost: Optional[float] = Field(default=None, ge=0, alias="estimatedCost")
    tips: Optional[str] = None
    best_time: Optional[str] = Field(default=None, alias="bestTime")

    @field_validator("duration", "estimated_cost", mode="before")
    @classmethod
    def lenient_number(cls, value, info):
        """Drafted numbers are untrusted; anything not a non-negative number becomes unknown."""
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if number != number or number < 0 or number == float("inf"):
            return None
        return round(number) if info.field_name == "duration" else number

    @property
    def display_name(self) -> str:
        return self.place_name or self.name or ""


class DraftDay(BaseModel):
    """One drafted day."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    day_number: Optional[int] = Field(default=None, alias="dayNumber")
    theme: Optional[str] = None
    places: list[DraftPlace] = Field(default_factory=list)


class ItineraryDraft(BaseModel):
    """Day-by-day place recommendations drafted by the LLM."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    days: list[DraftDay] = Field(default_factory=list)
    overall_tips: Optional[str] = Field(default=None, alias="overallTips")


class TravelGroupType(str, Enum):
    """Travel group selector offered to the traveler."""
    SOLO = "solo"
    COUPLE = "couple"
    FAMILY_YOUNG = "family-young"
    FAMILY = "family"
    SENIORS = "seniors"
    FRIENDS = "friends"
    BUSINESS = "business"
