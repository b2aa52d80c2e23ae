"""
Itinerary generation orchestrator.
Coordinates the pipeline: AI draft or category search → assembly →
safety validation → fallbacks and explanation.

Safety overrides personalization, but never suppresses the result: an
unapproved plan is still returned with its warnings attached.
"""
import asyncio
import datetime as dt
import logging
from typing import Optional, Union

from src.config import settings, Settings
from src.domain.models import (
    CandidatePlace,
    Day,
    InterestKey,
    Itinerary,
    ItineraryDraft,
    ItineraryStatus,
    PreferenceVector,
    TravelGroup,
    TravelGroupType,
    UserContext,
)
from src.domain.schemas import GenerateItineraryRequest
from src.application.context_safety import ContextSafetyEngine
from src.application.itinerary_assembler import ItineraryAssembler, draft_search_query
from src.application.personalization import PersonalizationEngine
from src.application.place_recommendations import PlaceRecommendationService
from src.infrastructure.place_source import CandidateSource

logger = logging.getLogger(__name__)


# Category searches used when no AI draft is available
CATEGORY_QUERIES = [
    ("{destination} famous tourist attractions landmarks", "attraction"),
    ("{destination} best restaurants famous food", "restaurant"),
    ("{destination} temples religious sites churches mosques", "temple"),
    ("{destination} historical monuments heritage sites", "monument"),
    ("{destination} museums art galleries", "museum"),
    ("{destination} parks gardens nature", "park"),
    ("{destination} local street food markets", "market"),
]

# Interest dimension each searched category speaks to, used for ranking
CATEGORY_INTERESTS = {
    "attraction": InterestKey.PHOTOGRAPHY,
    "restaurant": InterestKey.FOOD,
    "temple": InterestKey.CULTURE,
    "monument": InterestKey.HISTORY,
    "museum": InterestKey.CULTURE,
    "park": InterestKey.NATURE,
    "market": InterestKey.SHOPPING,
}

# Structured group composition per travel group selector
TRAVEL_GROUPS = {
    TravelGroupType.SOLO: dict(size=1),
    TravelGroupType.COUPLE: dict(size=2),
    TravelGroupType.FAMILY_YOUNG: dict(size=4, has_children=True),
    TravelGroupType.FAMILY: dict(size=4),
    TravelGroupType.SENIORS: dict(size=2, has_elderly=True),
    TravelGroupType.FRIENDS: dict(size=5),
    TravelGroupType.BUSINESS: dict(size=1),
}

MOBILITY_ACCESSIBILITY_TYPES = ("wheelchair", "mobility")

# Interest weight above which an interest is passed to the drafting prompt
PROMPT_INTEREST_THRESHOLD = 0.6


def parse_travel_group(
    group_type: Optional[Union[TravelGroupType, str]],
    accessibility: Optional[str] = None,
) -> TravelGroup:
    """
    Translate the travel group and accessibility selectors into a TravelGroup.
    Unknown selectors fall back to a single traveler.
    """
    try:
        selector = TravelGroupType(group_type) if group_type else TravelGroupType.SOLO
    except ValueError:
        logger.warning(f"Unknown travel group '{group_type}', assuming solo")
        selector = TravelGroupType.SOLO

    group = TravelGroup(**TRAVEL_GROUPS[selector])
    if accessibility in MOBILITY_ACCESSIBILITY_TYPES:
        group.has_mobility_issues = True
    group.accessibility_type = accessibility or "none"
    return group


def trip_length(start_date: dt.date, end_date: dt.date) -> int:
    """Number of days in an inclusive date range (at least 1)."""
    return max(1, (end_date - start_date).days + 1)


class ItineraryOrchestrator:
    """
    Runs the generation pipeline for one request.
    All collaborators are injected; the orchestrator holds no per-request state.
    """

    def __init__(
        self,
        place_source: CandidateSource,
        recommender: PlaceRecommendationService,
        assembler: ItineraryAssembler,
        personalization: PersonalizationEngine,
        safety: ContextSafetyEngine,
        app_settings: Optional[Settings] = None,
    ):
        self.place_source = place_source
        self.recommender = recommender
        self.assembler = assembler
        self.personalization = personalization
        self.safety = safety
        self._settings = app_settings or settings

    async def _safe_search(self, query: str) -> list[CandidatePlace]:
        """Search the candidate source; a failed call yields no candidates."""
        try:
            return await self.place_source.search_places(query)
        except Exception as e:
            logger.warning(f"Candidate search failed for '{query}': {e}")
            return []

    async def _enrich_draft(
        self,
        draft: ItineraryDraft,
        num_days: int,
        destination: str,
    ) -> dict[str, Optional[CandidatePlace]]:
        """
        Look up every drafted place in the candidate source.
        Calls run in batches; a batch completes before the next one starts.
        """
        queries: list[str] = []
        for draft_day in draft.days[:num_days]:
            for place in draft_day.places:
                query = draft_search_query(place, destination)
                if query and query not in queries:
                    queries.append(query)

        batch_size = max(1, self._settings.enrichment_batch_size)
        enriched: dict[str, Optional[CandidatePlace]] = {}

        for offset in range(0, len(queries), batch_size):
            batch = queries[offset:offset + batch_size]
            results = await asyncio.gather(*(self._safe_search(query) for query in batch))
            for query, found in zip(batch, results):
                enriched[query] = found[0] if found else None

        matched = sum(1 for place in enriched.values() if place is not None)
        logger.info(f"Enriched {matched}/{len(queries)} drafted places")
        return enriched

    def _with_category_defaults(self, place: CandidatePlace, category: str) -> CandidatePlace:
        """Attach the searched category's interest and cost/duration estimates for ranking."""
        interest = CATEGORY_INTERESTS[category].value
        is_meal = category == "restaurant"
        return place.model_copy(
            update={
                "categories": place.categories if interest in place.categories else [*place.categories, interest],
                "estimated_cost": place.estimated_cost if place.estimated_cost is not None else (800.0 if is_meal else 500.0),
                "estimated_duration": place.estimated_duration or (90 if is_meal else 120),
            }
        )

    async def _search_categories(
        self,
        destination: str,
        preferences: PreferenceVector,
    ) -> dict[str, list[CandidatePlace]]:
        """Search every category in parallel and rank each list for the traveler."""
        results = await asyncio.gather(
            *(self._safe_search(template.format(destination=destination)) for template, _ in CATEGORY_QUERIES)
        )

        places_by_category: dict[str, list[CandidatePlace]] = {}
        for (_, category), found in zip(CATEGORY_QUERIES, results):
            unique: dict[str, CandidatePlace] = {}
            for place in found:
                unique.setdefault(place.id, self._with_category_defaults(place, category))
            ranked = self.personalization.rank_places(list(unique.values()), preferences)
            places_by_category[category] = [item.place for item in ranked]

        total = sum(len(places) for places in places_by_category.values())
        logger.info(f"Category search for {destination} returned {total} candidates")
        return places_by_category

    def _draft_interests(self, request: GenerateItineraryRequest, preferences: PreferenceVector) -> list[str]:
        if request.interests:
            return list(request.interests)
        return [
            key.value
            for key, weight in preferences.interests.items()
            if weight > PROMPT_INTEREST_THRESHOLD
        ]

    async def build_days(
        self,
        request: GenerateItineraryRequest,
        preferences: PreferenceVector,
    ) -> list[Day]:
        """Assemble days from an AI draft, or from ranked category searches when there is none."""
        num_days = trip_length(request.start_date, request.end_date)

        draft = await self.recommender.generate_place_recommendations(
            request.destination,
            num_days,
            self._draft_interests(request, preferences),
        )

        if draft is not None:
            logger.info(f"Using AI draft for {request.destination}")
            enriched = await self._enrich_draft(draft, num_days, request.destination)
            return self.assembler.assemble_from_draft(
                draft, request.start_date, num_days, request.destination, enriched
            )

        logger.info(f"Using category search fallback for {request.destination}")
        places_by_category = await self._search_categories(request.destination, preferences)
        return self.assembler.assemble_from_candidates(places_by_category, request.start_date, num_days)

    async def generate_itinerary(
        self,
        request: GenerateItineraryRequest,
        preferences: Optional[PreferenceVector] = None,
    ) -> Itinerary:
        """
        Generate and validate an itinerary.

        Args:
            request: Validated generation request
            preferences: Traveler's preference vector (neutral defaults if None)

        Returns:
            Itinerary with the safety verdict, fallbacks and explanation attached
        """
        prefs = preferences or PreferenceVector()
        days = await self.build_days(request, prefs)

        context = UserContext(
            destination=request.destination,
            start_date=request.start_date,
            end_date=request.end_date,
            total_budget=(
                request.total_budget
                if request.total_budget is not None
                else self._settings.default_total_budget
            ),
            travel_group=parse_travel_group(request.travel_group, request.accessibility_needs),
            visited_places=prefs.visited_places,
            interests=list(request.interests),
        )

        validation = await self.safety.validate_context(context, days)
        fallbacks = []
        if validation.restrictions:
            fallbacks = self.safety.generate_safe_fallback(context, validation.restrictions)
        summary = self.safety.get_safety_status_summary(validation)

        itinerary = Itinerary(
            destination=request.destination,
            start_date=request.start_date,
            end_date=request.end_date,
            days=days,
            total_budget=context.total_budget,
            safety_score=validation.safety_score,
            safety_status=summary.status,
            safety_approved=validation.approved,
            safety_warnings=validation.warnings,
            safe_fallbacks=fallbacks,
            status=ItineraryStatus.DRAFT,
        )
        itinerary.ai_explanation = self.personalization.generate_explanation(itinerary, prefs)

        logger.info(f"Generated itinerary for {request.destination}: {summary.summary}")
        return itinerary
