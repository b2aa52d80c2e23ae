"""
Personalization Engine.
Scores candidate places against a traveler's preference vector and ranks them.
Purely deterministic - no I/O.
"""
import logging
from typing import Optional, Sequence

from src.domain.models import (
    BudgetLevel,
    CandidatePlace,
    InterestKey,
    Itinerary,
    PreferenceVector,
    ScoreBreakdown,
    ScoredPlace,
    ScoreResult,
    TravelPace,
)

logger = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def interest_key_for(category: str) -> Optional[InterestKey]:
    """Map a place category to an interest key ("Food " -> food), or None."""
    normalized = "".join(category.lower().split())
    try:
        return InterestKey(normalized)
    except ValueError:
        return None


class PersonalizationEngine:
    """
    Weighted multi-factor scoring of candidate places.
    Stateless: one instance can serve every request.
    """

    WEIGHTS = {
        "interest_match": 0.30,
        "accessibility_match": 0.20,
        "budget_match": 0.15,
        "sustainability_match": 0.10,
        "novelty_score": 0.15,
        "time_optimization": 0.10,
    }

    # Cost bands per budget level: [low, high)
    BUDGET_BANDS = {
        BudgetLevel.BUDGET: (0.0, 500.0),
        BudgetLevel.MID_RANGE: (500.0, 2000.0),
        BudgetLevel.LUXURY: (2000.0, float("inf")),
    }

    PACE_MULTIPLIERS = {
        TravelPace.SLOW: 1.5,
        TravelPace.MODERATE: 1.0,
        TravelPace.FAST: 0.7,
    }

    # Penalty multipliers and defaults
    WHEELCHAIR_PENALTY = 0.3
    DIETARY_PENALTY = 0.7
    VISITED_NOVELTY = 0.2
    DEFAULT_INTEREST = 0.5
    DEFAULT_BUDGET = 0.7
    BELOW_BUDGET = 0.8
    ABOVE_BUDGET = 0.4
    DEFAULT_SUSTAINABILITY = 0.5
    DEFAULT_TIME = 0.8

    # Duration window for the time sub-score (minutes)
    COMFORTABLE_DURATION = 180
    DURATION_DECAY_SPAN = 300
    MIN_TIME_SCORE = 0.5

    # Explanation thresholds
    STRONG_INTEREST = 0.6
    MAX_EXPLAINED_INTERESTS = 3

    def __init__(self, max_ranked: int = 50):
        self.max_ranked = max_ranked

    def _interest_match(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        weights = []
        for category in place.categories:
            key = interest_key_for(category)
            if key is not None and key in preferences.interests:
                weights.append(preferences.interests[key])

        if not weights:
            return self.DEFAULT_INTEREST

        score = _clamp(sum(weights) / len(weights))
        reasons.append(f"Interest match: {score * 100:.0f}% based on {', '.join(place.categories)}")
        return score

    def _accessibility_match(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        score = 1.0
        needs = preferences.accessibility

        if needs.wheelchair_friendly and not place.wheelchair_accessible:
            score *= self.WHEELCHAIR_PENALTY
            reasons.append("Not wheelchair accessible")

        if needs.dietary_restrictions:
            supported = set(place.dietary_options)
            if not any(diet in supported for diet in needs.dietary_restrictions):
                score *= self.DIETARY_PENALTY
                reasons.append("Limited dietary options")

        return score

    def _budget_match(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        if place.estimated_cost is None or preferences.budget_level is None:
            return self.DEFAULT_BUDGET

        low, high = self.BUDGET_BANDS[preferences.budget_level]
        cost = place.estimated_cost

        if low <= cost < high:
            reasons.append(f"Within {preferences.budget_level.value} budget")
            return 1.0
        if cost < low:
            reasons.append("Below budget range")
            return self.BELOW_BUDGET
        reasons.append("Above budget range")
        return self.ABOVE_BUDGET

    def _sustainability_match(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        if place.sustainability_score is None:
            return self.DEFAULT_SUSTAINABILITY

        interest = preferences.interests.get(InterestKey.SUSTAINABILITY, 0.5)
        reasons.append(f"Sustainability: {place.sustainability_score:g}/10")
        return _clamp((place.sustainability_score / 10) * (0.5 + interest))

    def _novelty_score(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        name = place.name.lower()
        for visit in preferences.visited_places:
            if (visit.place_id is not None and visit.place_id == place.id) or visit.place_name.lower() == name:
                reasons.append("Previously visited - lower priority")
                return self.VISITED_NOVELTY
        return 1.0

    def _time_optimization(
        self, preferences: PreferenceVector, place: CandidatePlace, reasons: list[str]
    ) -> float:
        if not place.estimated_duration or preferences.travel_pace is None:
            return self.DEFAULT_TIME

        adjusted = place.estimated_duration * self.PACE_MULTIPLIERS[preferences.travel_pace]
        reasons.append(f"Duration: {place.estimated_duration}min ({preferences.travel_pace.value} pace)")

        if adjusted <= self.COMFORTABLE_DURATION:
            return 1.0
        return max(self.MIN_TIME_SCORE, 1 - (adjusted - self.COMFORTABLE_DURATION) / self.DURATION_DECAY_SPAN)

    def score_place(self, preferences: PreferenceVector, place: CandidatePlace) -> ScoreResult:
        """
        Score one candidate against the preference vector.

        Args:
            preferences: Traveler's preference vector
            place: Candidate place

        Returns:
            ScoreResult with the weighted final score, per-factor breakdown,
            and one reasoning clause per factor that moved off its default
        """
        reasons: list[str] = []
        breakdown = ScoreBreakdown(
            interest_match=self._interest_match(preferences, place, reasons),
            accessibility_match=self._accessibility_match(preferences, place, reasons),
            budget_match=self._budget_match(preferences, place, reasons),
            sustainability_match=self._sustainability_match(preferences, place, reasons),
            novelty_score=self._novelty_score(preferences, place, reasons),
            time_optimization=self._time_optimization(preferences, place, reasons),
        )

        final = sum(getattr(breakdown, factor) * weight for factor, weight in self.WEIGHTS.items())

        return ScoreResult(
            final_score=round(_clamp(final), 2),
            breakdown=breakdown,
            reasoning=" | ".join(reasons),
        )

    def rank_places(
        self,
        places: Sequence[CandidatePlace],
        preferences: Optional[PreferenceVector] = None,
    ) -> list[ScoredPlace]:
        """
        Score and rank candidates, best first.
        Ties keep their input order; output is capped at max_ranked.
        """
        prefs = preferences or PreferenceVector()
        scored = [ScoredPlace(place=place, score=self.score_place(prefs, place)) for place in places]
        # sorted() is stable, so equal scores keep input order
        ranked = sorted(scored, key=lambda item: item.score.final_score, reverse=True)
        return ranked[:self.max_ranked]

    def generate_explanation(
        self,
        itinerary: Optional[Itinerary],
        preferences: Optional[PreferenceVector],
    ) -> str:
        """Build a short natural-language justification for an itinerary."""
        prefs = preferences or PreferenceVector()
        sentences = []

        top_interests = [
            key.value
            for key, weight in prefs.interests.items()
            if weight > self.STRONG_INTEREST
        ][:self.MAX_EXPLAINED_INTERESTS]
        if top_interests:
            sentences.append(f"Curated based on your interests in {', '.join(top_interests)}")

        if prefs.visited_places:
            sentences.append(f"Avoided {len(prefs.visited_places)} previously visited locations")

        if prefs.budget_level is not None:
            sentences.append(f"Optimized for {prefs.budget_level.value} budget")

        if prefs.accessibility.wheelchair_friendly:
            sentences.append("All locations are wheelchair accessible")

        if not sentences:
            return "Personalized itinerary based on your preferences and travel style."
        return ". ".join(sentences) + "."
