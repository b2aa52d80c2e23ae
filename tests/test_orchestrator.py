"""
Tests for the itinerary generation orchestrator.
"""
import asyncio
import pytest
from datetime import date
from typing import Optional, Sequence

from src.application.context_safety import ContextSafetyEngine
from src.application.itinerary_assembler import ItineraryAssembler
from src.application.orchestrator import (
    CATEGORY_QUERIES,
    ItineraryOrchestrator,
    parse_travel_group,
    trip_length,
)
from src.application.personalization import PersonalizationEngine
from src.application.place_recommendations import PlaceRecommendationService
from src.config import Settings
from src.domain.models import (
    CandidatePlace,
    Coordinates,
    DraftDay,
    DraftPlace,
    ItineraryDraft,
    PreferenceVector,
    SafetyStatus,
    TravelGroupType,
)
from src.domain.schemas import GenerateItineraryRequest
from src.infrastructure.place_source import CandidateSource


# ============================================================================
# Fakes
# ============================================================================

class FakeCandidateSource(CandidateSource):
    """Records queries and the peak number of concurrent searches."""

    def __init__(self, fail_on: Sequence[str] = (), empty: bool = False):
        self.queries: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._fail_on = fail_on
        self._empty = empty

    async def search_places(
        self,
        query: str,
        location: Optional[Coordinates] = None,
    ) -> list[CandidatePlace]:
        self.queries.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if any(term in query for term in self._fail_on):
                raise RuntimeError("upstream timeout")
            if self._empty:
                return []
            slug = "-".join(query.lower().split()[:2])
            return [
                CandidatePlace(id=f"{slug}-{i}", name=f"{query.split()[0]} Spot {i}", rating=4.0 + i / 10)
                for i in range(3)
            ]
        finally:
            self.in_flight -= 1

    async def get_place_details(self, place_id: str) -> Optional[CandidatePlace]:
        return None


class FakeRecommender(PlaceRecommendationService):
    """Returns a fixed draft (or None) without calling an LLM."""

    def __init__(self, draft: Optional[ItineraryDraft] = None):
        super().__init__(llm_client=None, app_settings=Settings(openrouter_api_key=None, anthropic_api_key=None))
        self._draft = draft
        self.calls = []

    async def generate_place_recommendations(self, destination, days, interests=()):
        self.calls.append({"destination": destination, "days": days, "interests": list(interests)})
        return self._draft


@pytest.fixture
def test_settings():
    return Settings(
        openrouter_api_key=None,
        anthropic_api_key=None,
        enrichment_batch_size=5,
        default_total_budget=10000,
    )


def make_orchestrator(source, recommender, app_settings):
    return ItineraryOrchestrator(
        place_source=source,
        recommender=recommender,
        assembler=ItineraryAssembler(),
        personalization=PersonalizationEngine(),
        safety=ContextSafetyEngine(),
        app_settings=app_settings,
    )


def make_request(**kwargs) -> GenerateItineraryRequest:
    values = dict(
        destination="Jaipur",
        start_date=date(2025, 11, 10),
        end_date=date(2025, 11, 12),
    )
    values.update(kwargs)
    return GenerateItineraryRequest(**values)


# ============================================================================
# Helpers
# ============================================================================

class TestParseTravelGroup:

    def test_family_with_young_children(self):
        group = parse_travel_group(TravelGroupType.FAMILY_YOUNG)
        assert group.has_children is True
        assert group.size == 4
        assert group.accessibility_type == "none"

    def test_seniors(self):
        group = parse_travel_group("seniors")
        assert group.has_elderly is True
        assert group.size == 2

    def test_wheelchair_sets_mobility(self):
        group = parse_travel_group("couple", "wheelchair")
        assert group.has_mobility_issues is True
        assert group.accessibility_type == "wheelchair"

    def test_unknown_selector_is_solo(self):
        group = parse_travel_group("backpackers")
        assert group.size == 1
        assert not group.has_children
        assert not group.has_elderly


def test_trip_length():
    assert trip_length(date(2025, 11, 10), date(2025, 11, 12)) == 3
    assert trip_length(date(2025, 11, 10), date(2025, 11, 10)) == 1


# ============================================================================
# Pipeline
# ============================================================================

class TestItineraryOrchestrator:

    @pytest.mark.asyncio
    async def test_category_search_without_draft(self, test_settings):
        source = FakeCandidateSource()
        orchestrator = make_orchestrator(source, FakeRecommender(None), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request())

        assert len(source.queries) == len(CATEGORY_QUERIES) == 7
        assert all(query.startswith("Jaipur ") for query in source.queries)
        assert len(itinerary.days) == 3
        assert [day.day_number for day in itinerary.days] == [1, 2, 3]
        assert itinerary.days[0].theme == "Heritage & Culture - Day 1"
        assert itinerary.total_budget == 10000
        assert itinerary.safety_approved is True
        assert itinerary.safety_score == 100
        assert itinerary.safety_status == SafetyStatus.SAFE
        assert itinerary.safe_fallbacks == []
        assert itinerary.ai_explanation == "Personalized itinerary based on your preferences and travel style."

        used = [a.place_id for day in itinerary.days for a in day.activities]
        assert len(used) == len(set(used))

    @pytest.mark.asyncio
    async def test_failed_category_search_is_tolerated(self, test_settings):
        source = FakeCandidateSource(fail_on=("restaurants", "museums"))
        orchestrator = make_orchestrator(source, FakeRecommender(None), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request())

        assert len(itinerary.days) == 3
        assert all(day.activities for day in itinerary.days)

    @pytest.mark.asyncio
    async def test_no_candidates_still_returns_days(self, test_settings):
        source = FakeCandidateSource(empty=True)
        orchestrator = make_orchestrator(source, FakeRecommender(None), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request())

        assert [len(day.activities) for day in itinerary.days] == [0, 0, 0]
        assert itinerary.safety_approved is True

    @pytest.mark.asyncio
    async def test_draft_enrichment_is_batched(self, test_settings):
        draft = ItineraryDraft(days=[
            DraftDay(theme=f"Day {d}", places=[
                DraftPlace(place_name=f"Place {d}-{p}", city="Jaipur") for p in range(4)
            ])
            for d in range(3)
        ])
        source = FakeCandidateSource()
        orchestrator = make_orchestrator(source, FakeRecommender(draft), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request())

        assert len(source.queries) == 12
        assert source.max_in_flight <= 5
        assert [day.theme for day in itinerary.days] == ["Day 0", "Day 1", "Day 2"]
        # Every drafted place matched the source's first result
        assert itinerary.days[0].activities[0].place_id == "place-0-0-0"
        assert itinerary.days[0].activities[0].rating == 4.0

    @pytest.mark.asyncio
    async def test_unmatched_draft_places_keep_draft_data(self, test_settings):
        draft = ItineraryDraft(days=[DraftDay(places=[DraftPlace(place_name="Hawa Mahal", city="Jaipur")])])
        orchestrator = make_orchestrator(FakeCandidateSource(empty=True), FakeRecommender(draft), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request())

        # One drafted day is cycled across the whole trip
        assert len(itinerary.days) == 3
        assert itinerary.days[2].theme == "Day 3 - More Exploration"
        assert itinerary.days[0].activities[0].place_id.startswith("ai-")

    @pytest.mark.asyncio
    async def test_request_interests_reach_the_draft(self, test_settings):
        recommender = FakeRecommender(None)
        orchestrator = make_orchestrator(FakeCandidateSource(), recommender, test_settings)

        await orchestrator.generate_itinerary(make_request(interests="history, food"))

        assert recommender.calls[0] == {"destination": "Jaipur", "days": 3, "interests": ["history", "food"]}

    @pytest.mark.asyncio
    async def test_child_unsafe_venue_blocks_approval(self, test_settings):
        draft = ItineraryDraft(days=[DraftDay(places=[
            DraftPlace(place_name="Amber Fort", city="Jaipur", category="landmark"),
            DraftPlace(place_name="Skyline Club", city="Jaipur", category="nightclub"),
        ])])
        orchestrator = make_orchestrator(FakeCandidateSource(empty=True), FakeRecommender(draft), test_settings)

        itinerary = await orchestrator.generate_itinerary(
            make_request(travel_group=TravelGroupType.FAMILY_YOUNG, end_date=date(2025, 11, 10))
        )

        assert itinerary.safety_approved is False
        assert itinerary.safety_score == 80
        assert itinerary.safety_status == SafetyStatus.MODERATE
        assert [f.type for f in itinerary.safe_fallbacks] == ["FAMILY_FRIENDLY"]
        # The plan is still returned
        assert [a.place_name for a in itinerary.days[0].activities] == ["Amber Fort", "Skyline Club"]

    @pytest.mark.asyncio
    async def test_preferences_shape_explanation(self, test_settings):
        orchestrator = make_orchestrator(FakeCandidateSource(), FakeRecommender(None), test_settings)
        prefs = PreferenceVector(interests={"history": 0.9})

        itinerary = await orchestrator.generate_itinerary(make_request(total_budget=25000), prefs)

        assert itinerary.total_budget == 25000
        assert itinerary.ai_explanation.startswith("Curated based on your interests in history.")

    @pytest.mark.asyncio
    async def test_zero_budget_is_kept(self, test_settings):
        orchestrator = make_orchestrator(FakeCandidateSource(), FakeRecommender(None), test_settings)

        itinerary = await orchestrator.generate_itinerary(make_request(total_budget=0), PreferenceVector())

        assert itinerary.total_budget == 0
