"""
Context & Safety Engine.
Runs independent rule checks over an assembled itinerary and produces a
safety score, warnings, hard restrictions and corrective suggestions.

Safety overrides personalization: a plan with restrictions is never
approved, whatever its score.
"""
import datetime as dt
import inspect
import logging
from typing import Any, Callable, Optional, Sequence

from src.domain.models import (
    Alternative,
    CheckOutcome,
    CheckResult,
    ContextAnalysis,
    Day,
    Degraded,
    Fallback,
    Restriction,
    SafetyStatus,
    SafetyStatusSummary,
    SafetyValidationResult,
    SafetyWarning,
    Severity,
    TravelGroup,
    UserContext,
    VisitedPlace,
)
from src.infrastructure.geocoding import GeocodingService
from src.infrastructure.weather import EXTREME_WEATHER_CODES, WeatherSource, weather_recommendation

logger = logging.getLogger(__name__)


# Fallback bundles per restriction type; anything else gets GENERAL_SAFE_FALLBACK
FALLBACK_BUNDLES = {
    "WEATHER_EXTREME": Fallback(
        type="INDOOR_ALTERNATIVE",
        message="Consider indoor attractions like museums, malls, or cultural centers",
        suggestions=["Local Museum", "Shopping Mall", "Indoor Cultural Center", "Cooking Class"],
    ),
    "CHILD_UNSAFE": Fallback(
        type="FAMILY_FRIENDLY",
        message="Family-friendly alternatives available",
        suggestions=["Parks", "Zoo", "Children's Museum", "Aquarium", "Family Restaurant"],
    ),
    "MOBILITY_CONCERN": Fallback(
        type="ACCESSIBLE",
        message="Accessibility-friendly alternatives",
        suggestions=["Scenic Drives", "Boat Tours", "Accessible Museums", "Gardens with Paths"],
    ),
}

GENERAL_SAFE_FALLBACK = Fallback(
    type="GENERAL_SAFE",
    message="Safe alternative activities",
    suggestions=["City Tour", "Local Restaurant", "Cultural Show", "Market Visit"],
)

# (upper bound exclusive, status, color, icon), checked in order
STATUS_BANDS = (
    (50, SafetyStatus.UNSAFE, "red", "🚫"),
    (70, SafetyStatus.CAUTION, "orange", "⚠️"),
    (90, SafetyStatus.MODERATE, "yellow", "⚡"),
)
SAFE_BAND = (SafetyStatus.SAFE, "green", "✅")

SENSITIVE_FIELDS = ("password", "creditCard", "credit_card", "ssn", "phoneNumber", "phone_number")


def status_for_score(score: int) -> tuple[SafetyStatus, str, str]:
    """Map a safety score to its (status, color, icon) display band."""
    for upper, status, color, icon in STATUS_BANDS:
        if score < upper:
            return status, color, icon
    return SAFE_BAND


def sanitize_user_data(user_data: dict[str, Any]) -> dict[str, Any]:
    """
    Strip sensitive fields before user data is logged or echoed.
    Emails are masked to their first character and domain.
    """
    sanitized = {
        key: value
        for key, value in user_data.items()
        if key not in SENSITIVE_FIELDS
    }

    email = sanitized.get("email")
    if isinstance(email, str) and email:
        name, _, domain = email.partition("@")
        sanitized["email"] = f"{name[:1]}***@{domain}" if domain else f"{name[:1]}***"

    return sanitized


class ContextSafetyEngine:
    """
    Rule-based safety validation.
    Each check returns a CheckOutcome; a check that raises is reported as
    Degraded and the rest of the validation still runs.
    """

    STARTING_SCORE = 100
    APPROVAL_THRESHOLD = 50

    # Time feasibility
    MAX_DAILY_HOURS = 10
    TRANSIT_MINUTES_PER_ACTIVITY = 30
    DEFAULT_ACTIVITY_MINUTES = 120
    MAX_ACTIVITIES_PER_DAY = 6

    # Night window: end hour >= 23 or < 5
    UNSAFE_HOURS_START = 23
    UNSAFE_HOURS_END = 5

    # Exhaustion
    HEAVY_DAY_MINUTES = 480
    CONSECUTIVE_HEAVY_DAYS = 3

    # Weather
    MAX_SAFE_TEMP_C = 42
    MIN_SAFE_TEMP_C = -5
    MAX_SAFE_WIND_MS = 15
    FORECAST_DAYS = 5

    # Group composition
    CHILD_UNSAFE_TERMS = ("bar", "nightclub", "casino", "adult")
    STRENUOUS_TERMS = ("trek", "hike", "climb", "adventure")
    LONG_ACTIVITY_MINUTES = 180

    # Flat deductions, applied once per validation
    TIME_DEDUCTION = 15
    GROUP_DEDUCTION = 20
    NIGHT_DEDUCTION = 15
    EXHAUSTION_DEDUCTION = 10
    WEATHER_DEDUCTION_PER_SEVERITY = 10

    # Context analysis
    BUDGET_DAILY_LIMIT = 2000
    MID_RANGE_DAILY_LIMIT = 5000
    LARGE_GROUP_SIZE = 6

    def __init__(
        self,
        weather_source: Optional[WeatherSource] = None,
        geocoder: Optional[GeocodingService] = None,
    ):
        """
        Initialize the engine.

        Args:
            weather_source: Forecast provider (weather check is skipped without it)
            geocoder: Destination geocoder used before fetching the forecast
        """
        self.weather_source = weather_source
        self.geocoder = geocoder

    # =========================================================================
    # Context analysis
    # =========================================================================

    def analyze_user_context(self, context: UserContext) -> ContextAnalysis:
        """Derive duration, budget band, season and special needs of a trip."""
        analysis = ContextAnalysis()

        if context.start_date and context.end_date:
            analysis.trip_duration = (context.end_date - context.start_date).days + 1

        if context.total_budget is not None:
            daily_budget = context.total_budget / (analysis.trip_duration or 1)
            if daily_budget < self.BUDGET_DAILY_LIMIT:
                analysis.budget_category = "budget"
            elif daily_budget < self.MID_RANGE_DAILY_LIMIT:
                analysis.budget_category = "mid-range"
            else:
                analysis.budget_category = "luxury"

        month = (context.start_date or dt.date.today()).month
        if 3 <= month <= 5:
            analysis.seasonal_context = "spring"
        elif 6 <= month <= 8:
            analysis.seasonal_context = "summer"
        elif 9 <= month <= 11:
            analysis.seasonal_context = "autumn"
        else:
            analysis.seasonal_context = "winter"

        group = context.travel_group
        if group:
            if group.has_children:
                analysis.group_type = "family"
                analysis.special_needs.append("child-friendly")
            if group.has_elderly:
                analysis.group_type = "senior-inclusive"
                analysis.special_needs.extend(["accessibility", "rest-stops"])
            if group.size > self.LARGE_GROUP_SIZE:
                analysis.special_needs.append("group-friendly")

        return analysis

    # =========================================================================
    # Checks
    # =========================================================================

    async def check_weather_safety(self, context: UserContext) -> CheckOutcome:
        """
        Flag extreme weather in the trip window and attach a traveler
        advisory for every forecast day inside it.
        Missing collaborators, an unknown destination or an empty forecast
        leave the check safe with no deduction.
        """
        outcome = CheckOutcome(check="weather")

        if not self.weather_source or not self.geocoder or not context.start_date:
            return outcome

        location = await self.geocoder.geocode_city(context.destination)
        if location is None:
            return outcome

        forecast = await self.weather_source.get_forecast(location.lat, location.lon, self.FORECAST_DAYS)
        end_date = context.end_date or context.start_date

        severity = 0
        affected_dates: list[dt.date] = []

        for day in forecast:
            if not context.start_date <= day.date <= end_date:
                continue

            outcome.advisories.append(weather_recommendation(day))

            if day.condition_code in EXTREME_WEATHER_CODES:
                severity = 3
                affected_dates.append(day.date)
                outcome.warnings.append(
                    SafetyWarning(
                        type="WEATHER_EXTREME",
                        message=f"Extreme weather expected: {day.description or day.condition_code}",
                        severity=Severity.HIGH,
                        date=day.date,
                    )
                )

            if day.temp_max > self.MAX_SAFE_TEMP_C or day.temp_min < self.MIN_SAFE_TEMP_C:
                temp = day.temp_max if day.temp_max > self.MAX_SAFE_TEMP_C else day.temp_min
                outcome.warnings.append(
                    SafetyWarning(
                        type="WEATHER_TEMPERATURE",
                        message=f"Extreme temperature: {temp:g}°C expected on {day.date.isoformat()}",
                        severity=Severity.MEDIUM,
                        date=day.date,
                    )
                )
                severity = max(severity, 2)

            if day.wind_speed > self.MAX_SAFE_WIND_MS:
                outcome.warnings.append(
                    SafetyWarning(
                        type="WEATHER_WIND",
                        message=f"High winds ({day.wind_speed:g} m/s) expected. Outdoor activities may be affected.",
                        severity=Severity.LOW,
                        date=day.date,
                    )
                )
                severity = max(severity, 1)

        if affected_dates:
            outcome.restrictions.append(
                Restriction(
                    type="WEATHER_EXTREME",
                    message="Extreme weather conditions detected. Consider rescheduling outdoor activities.",
                    dates=affected_dates,
                )
            )

        if outcome.warnings:
            outcome.safe = False
            outcome.deduction = self.WEATHER_DEDUCTION_PER_SEVERITY * severity

        return outcome

    def check_time_feasibility(self, days: Sequence[Day]) -> CheckOutcome:
        """Flag days whose activities plus transit exceed the daily limit."""
        outcome = CheckOutcome(check="time_feasibility")

        for day in days:
            total_minutes = sum(
                (activity.duration or self.DEFAULT_ACTIVITY_MINUTES) + self.TRANSIT_MINUTES_PER_ACTIVITY
                for activity in day.activities
            )
            total_hours = total_minutes / 60

            if total_hours > self.MAX_DAILY_HOURS:
                outcome.warnings.append(
                    SafetyWarning(
                        type="TIME_OVERLOAD",
                        message=(
                            f"Day {day.day_number}: {total_hours:.1f} hours planned exceeds "
                            f"safe limit of {self.MAX_DAILY_HOURS} hours"
                        ),
                        severity=Severity.MEDIUM,
                        date=day.date,
                    )
                )
                outcome.alternatives.append(
                    Alternative(
                        suggestion=(
                            f"Consider reducing activities on Day {day.day_number} "
                            "or splitting across multiple days"
                        ),
                        action="REDUCE_ACTIVITIES",
                    )
                )
                outcome.safe = False

            if len(day.activities) > self.MAX_ACTIVITIES_PER_DAY:
                outcome.warnings.append(
                    SafetyWarning(
                        type="ACTIVITY_OVERLOAD",
                        message=f"Day {day.day_number}: {len(day.activities)} activities may be too many",
                        severity=Severity.LOW,
                        date=day.date,
                    )
                )

        if not outcome.safe:
            outcome.deduction = self.TIME_DEDUCTION

        return outcome

    @staticmethod
    def _matches_any(terms: Sequence[str], *fields: Optional[str]) -> bool:
        haystacks = [field.lower() for field in fields if field]
        return any(term in haystack for term in terms for haystack in haystacks)

    def check_group_safety(self, travel_group: Optional[TravelGroup], days: Sequence[Day]) -> CheckOutcome:
        """Block child-unsafe venues; warn about strenuous or long visits for elderly/mobility needs."""
        outcome = CheckOutcome(check="group_safety")

        if travel_group is None:
            return outcome

        needs_easy_pace = travel_group.has_elderly or travel_group.has_mobility_issues

        for day in days:
            for activity in day.activities:
                if travel_group.has_children and self._matches_any(
                    self.CHILD_UNSAFE_TERMS, activity.category, activity.place_name
                ):
                    outcome.restrictions.append(
                        Restriction(
                            type="CHILD_UNSAFE",
                            message=f'"{activity.place_name}" may not be suitable for children',
                            place=activity.place_name,
                            dates=[day.date],
                        )
                    )

                if not needs_easy_pace:
                    continue

                if self._matches_any(self.STRENUOUS_TERMS, activity.category, activity.place_name):
                    outcome.warnings.append(
                        SafetyWarning(
                            type="MOBILITY_CONCERN",
                            message=f'"{activity.place_name}" may require significant walking/climbing',
                            severity=Severity.MEDIUM,
                            place=activity.place_name,
                            date=day.date,
                        )
                    )

                if activity.duration > self.LONG_ACTIVITY_MINUTES:
                    outcome.warnings.append(
                        SafetyWarning(
                            type="DURATION_CONCERN",
                            message=(
                                f'"{activity.place_name}" ({activity.duration} min) - '
                                "Consider shorter visit for comfort"
                            ),
                            severity=Severity.LOW,
                            place=activity.place_name,
                            date=day.date,
                        )
                    )

        outcome.safe = not outcome.restrictions and not outcome.warnings
        if outcome.restrictions:
            outcome.deduction = self.GROUP_DEDUCTION

        return outcome

    def _is_late(self, clock: str) -> bool:
        hour = int(clock.split(":")[0])
        return hour >= self.UNSAFE_HOURS_START or hour < self.UNSAFE_HOURS_END

    def check_night_safety(self, days: Sequence[Day]) -> CheckOutcome:
        """Warn about activities ending inside the late-night window."""
        outcome = CheckOutcome(check="night_safety")

        for day in days:
            for activity in day.activities:
                if not activity.end_time or not self._is_late(activity.end_time):
                    continue

                outcome.warnings.append(
                    SafetyWarning(
                        type="LATE_NIGHT",
                        message=(
                            f'"{activity.place_name}" ends at {activity.end_time} - '
                            "Late night travel may be unsafe"
                        ),
                        severity=Severity.MEDIUM,
                        place=activity.place_name,
                        date=day.date,
                    )
                )
                outcome.alternatives.append(
                    Alternative(
                        suggestion=f'Consider visiting "{activity.place_name}" earlier in the day',
                        action="RESCHEDULE",
                    )
                )

        if outcome.warnings:
            outcome.safe = False
            outcome.deduction = self.NIGHT_DEDUCTION

        return outcome

    def _exhaustion_warning(self, streak: int) -> tuple[SafetyWarning, Alternative]:
        return (
            SafetyWarning(
                type="EXHAUSTION_RISK",
                message=f"{streak} consecutive intensive days detected. Risk of travel fatigue.",
                severity=Severity.MEDIUM,
            ),
            Alternative(
                suggestion="Consider adding a rest day or reducing activities",
                action="ADD_REST_DAY",
            ),
        )

    def check_exhaustion_risk(self, days: Sequence[Day]) -> CheckOutcome:
        """
        Warn once per run of consecutive heavy days.
        A run of N >= 3 heavy days yields a single warning, not N - 2.
        """
        outcome = CheckOutcome(check="exhaustion")
        streaks = []
        streak = 0

        for day in days:
            total_minutes = sum(activity.duration for activity in day.activities)
            if total_minutes > self.HEAVY_DAY_MINUTES:
                streak += 1
                continue
            streaks.append(streak)
            streak = 0
        streaks.append(streak)

        for length in streaks:
            if length >= self.CONSECUTIVE_HEAVY_DAYS:
                warning, alternative = self._exhaustion_warning(length)
                outcome.warnings.append(warning)
                outcome.alternatives.append(alternative)

        if outcome.warnings:
            outcome.safe = False
            outcome.deduction = self.EXHAUSTION_DEDUCTION

        return outcome

    def check_repetition(self, visited_places: Sequence[VisitedPlace], days: Sequence[Day]) -> CheckOutcome:
        """Note activities the traveler has already visited. Informational only."""
        outcome = CheckOutcome(check="repetition")

        visited_names = {place.place_name.lower() for place in visited_places if place.place_name}
        if not visited_names:
            return outcome

        for day in days:
            for activity in day.activities:
                if activity.place_name.lower() in visited_names:
                    outcome.warnings.append(
                        SafetyWarning(
                            type="REPETITION",
                            message=f'"{activity.place_name}" was previously visited',
                            severity=Severity.LOW,
                            place=activity.place_name,
                            date=day.date,
                        )
                    )

        return outcome

    # =========================================================================
    # Validation
    # =========================================================================

    async def _run_check(self, name: str, check: Callable[..., Any], *args: Any) -> CheckResult:
        """Run one check, converting any exception into a Degraded result."""
        try:
            result = check(*args)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Safety check '{name}' failed: {e}", exc_info=True)
            return Degraded(check=name, reason=str(e) or type(e).__name__)

    async def validate_context(self, context: UserContext, days: Sequence[Day]) -> SafetyValidationResult:
        """
        Validate an assembled itinerary against the trip context.

        Never raises: checks that fail are collected as degraded and
        reported through a single SYSTEM warning.

        Args:
            context: Trip and traveler context
            days: Assembled itinerary days

        Returns:
            SafetyValidationResult; approved iff score >= 50 and no restrictions
        """
        result = SafetyValidationResult()
        degraded: list[Degraded] = []

        try:
            result.context_analysis = self.analyze_user_context(context)
        except Exception as e:
            logger.error(f"Context analysis failed: {e}", exc_info=True)
            degraded.append(Degraded(check="context_analysis", reason=str(e)))

        checks: list[CheckResult] = [
            await self._run_check("weather", self.check_weather_safety, context),
            await self._run_check("time_feasibility", self.check_time_feasibility, days),
            await self._run_check("group_safety", self.check_group_safety, context.travel_group, days),
            await self._run_check("night_safety", self.check_night_safety, days),
            await self._run_check("exhaustion", self.check_exhaustion_risk, days),
            await self._run_check("repetition", self.check_repetition, context.visited_places, days),
        ]

        score = self.STARTING_SCORE
        for check in checks:
            if isinstance(check, Degraded):
                degraded.append(check)
                continue
            result.warnings.extend(check.warnings)
            result.restrictions.extend(check.restrictions)
            result.safe_alternatives.extend(check.alternatives)
            result.context_analysis.weather_advisories.extend(check.advisories)
            score -= check.deduction

        if degraded:
            logger.warning(f"Degraded safety checks: {', '.join(d.check for d in degraded)}")
            result.warnings.append(
                SafetyWarning(
                    type="SYSTEM",
                    message="Unable to complete all safety checks. Proceed with caution.",
                    severity=Severity.MEDIUM,
                )
            )

        result.safety_score = max(0, score)
        result.approved = result.safety_score >= self.APPROVAL_THRESHOLD and not result.restrictions

        logger.info(
            f"Safety validation for {context.destination}: score={result.safety_score} "
            f"approved={result.approved} warnings={len(result.warnings)} "
            f"restrictions={len(result.restrictions)}"
        )

        return result

    # =========================================================================
    # Fallbacks and display
    # =========================================================================

    def generate_safe_fallback(
        self,
        context: Optional[UserContext],
        restrictions: Sequence[Restriction],
    ) -> list[Fallback]:
        """One fallback bundle per restriction, in restriction order."""
        return [
            FALLBACK_BUNDLES.get(restriction.type, GENERAL_SAFE_FALLBACK).model_copy(deep=True)
            for restriction in restrictions
        ]

    def get_safety_status_summary(self, result: SafetyValidationResult) -> SafetyStatusSummary:
        """Display band, counts and a one-line summary of a validation result."""
        status, color, icon = status_for_score(result.safety_score)
        return SafetyStatusSummary(
            status=status,
            score=result.safety_score,
            color=color,
            icon=icon,
            warning_count=len(result.warnings),
            restriction_count=len(result.restrictions),
            summary=f"{icon} Safety Score: {result.safety_score}/100 - {status.value}",
        )
