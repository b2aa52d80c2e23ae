"""
Itinerary Assembler.
Turns an AI day-draft or per-category candidate lists into scheduled days.
"""
import datetime as dt
import hashlib
import logging
from typing import Mapping, Optional, Sequence

from src.domain.models import (
    Activity,
    CandidatePlace,
    Day,
    DraftPlace,
    ItineraryDraft,
)
from src.infrastructure.geo import path_distance_km

logger = logging.getLogger(__name__)


DAY_START_MINUTES = 9 * 60
TRANSIT_BUFFER_MINUTES = 30
ACTIVITIES_PER_DAY = 4

# Placeholder photos for candidates found by category search
CATEGORY_IMAGES = {
    "attraction": "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=400",
    "restaurant": "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=400",
    "temple": "https://images.unsplash.com/photo-1544735716-392fe2489ffa?w=400",
    "monument": "https://images.unsplash.com/photo-1524492412937-b28074a5d7da?w=400",
    "museum": "https://images.unsplash.com/photo-1566127444979-b3d2b654e3d7?w=400",
    "park": "https://images.unsplash.com/photo-1519331379826-f10be5486c6f?w=400",
    "market": "https://images.unsplash.com/photo-1555529669-e69e7aa0ba9a?w=400",
}

# Placeholder photos for AI-drafted categories
DRAFT_IMAGES = {
    "landmark": "https://images.unsplash.com/photo-1524492412937-b28074a5d7da?w=400",
    "museum": "https://images.unsplash.com/photo-1566127444979-b3d2b654e3d7?w=400",
    "nature": "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=400",
    "religious": "https://images.unsplash.com/photo-1544735716-392fe2489ffa?w=400",
    "historical": "https://images.unsplash.com/photo-1524492412937-b28074a5d7da?w=400",
    "shopping": "https://images.unsplash.com/photo-1555529669-e69e7aa0ba9a?w=400",
    "attraction": "https://images.unsplash.com/photo-1469854523086-cc02fe5d8800?w=400",
}

# Theme rotation used when no AI draft is available
DAY_THEMES = [
    ("Heritage & Culture", ["monument", "temple", "restaurant", "attraction"]),
    ("Local Flavors & Temples", ["restaurant", "temple", "market", "park"]),
    ("Art & Cuisine", ["museum", "restaurant", "attraction", "temple"]),
    ("Nature & Spirituality", ["park", "temple", "restaurant", "monument"]),
    ("Hidden Gems", ["market", "temple", "restaurant", "museum"]),
]

# Order in which other categories are raided once a themed category runs dry
CATEGORY_PRIORITY = ["attraction", "monument", "temple", "restaurant", "museum", "park", "market"]

CATEGORY_REASONING = {
    "restaurant": "Famous for local cuisine",
    "temple": "Cultural & spiritual significance",
}

DEFAULT_DRAFT_DURATION = 120
DEFAULT_DRAFT_COST = 500.0
DEFAULT_DRAFT_RATING = 4.5
DEFAULT_CANDIDATE_RATING = 4.0


def format_clock(minutes: int) -> str:
    """
    Minutes since midnight as zero-padded HH:MM.
    Values past midnight are not wrapped: 1530 minutes -> "25:30".
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_slot_label(minutes: int, category: str) -> str:
    """Label an activity by the part of the day it starts in."""
    is_meal = category == "restaurant"
    if minutes >= 17 * 60:
        return "Dinner Time" if is_meal else "Evening Visit"
    if 12 * 60 <= minutes < 14 * 60:
        return "Lunch Time" if is_meal else "Afternoon Visit"
    if minutes >= 14 * 60:
        return "Afternoon Visit"
    return "Morning Visit"


def draft_search_query(place: DraftPlace, destination: str) -> str:
    """Text query used to look up a drafted place in the candidate source."""
    if place.place_name:
        return f"{place.place_name} {place.city or destination}"
    return f"{place.name or ''} {destination}".strip()


def _draft_place_id(query: str) -> str:
    return f"ai-{hashlib.sha1(query.encode('utf-8')).hexdigest()[:12]}"


def _build_day(day_number: int, date: dt.date, theme: str, activities: list[Activity]) -> Day:
    return Day(
        day_number=day_number,
        date=date,
        theme=theme,
        activities=activities,
        total_cost=sum(activity.cost for activity in activities),
        total_distance=path_distance_km([activity.coordinates for activity in activities]),
    )


class ItineraryAssembler:
    """
    Schedules places into days.
    Each day starts at 09:00; every activity advances the clock by its
    duration plus a fixed transit buffer. Clocks never carry across days.
    """

    def assemble_from_draft(
        self,
        draft: ItineraryDraft,
        start_date: dt.date,
        num_days: int,
        destination: str,
        enriched: Mapping[str, Optional[CandidatePlace]],
    ) -> list[Day]:
        """
        Build days from an AI draft.

        A place drafted on more than one day is only kept the first time.
        When fewer days were drafted than requested, the extra days reuse
        the drafted days in rotation.

        Args:
            draft: Parsed AI draft (must have at least one day)
            start_date: Date of day 1
            num_days: Requested trip length
            destination: Destination name, used as the default city
            enriched: Candidate-source match per search query (None if not found)
        """
        if not draft.days:
            return []

        seen: set[str] = set()
        templates: list[list[DraftPlace]] = []
        for draft_day in draft.days[:num_days]:
            places = []
            for place in draft_day.places:
                key = place.display_name.strip().lower()
                if not key or key in seen:
                    continue
                seen.add(key)
                places.append(place)
            templates.append(places)

        days = []
        for index in range(num_days):
            if index < len(templates):
                places = templates[index]
                theme = draft.days[index].theme or f"Day {index + 1} Exploration"
            else:
                places = templates[index % len(templates)]
                theme = f"Day {index + 1} - More Exploration"

            activities = self._schedule_draft_places(places, destination, enriched)
            days.append(_build_day(index + 1, start_date + dt.timedelta(days=index), theme, activities))

        logger.info(f"Assembled {len(days)} days from AI draft ({len(templates)} drafted)")
        return days

    def _schedule_draft_places(
        self,
        places: Sequence[DraftPlace],
        destination: str,
        enriched: Mapping[str, Optional[CandidatePlace]],
    ) -> list[Activity]:
        activities = []
        clock = DAY_START_MINUTES

        for place in places:
            query = draft_search_query(place, destination)
            match = enriched.get(query)
            duration = place.duration or DEFAULT_DRAFT_DURATION
            category = place.category or "attraction"
            summary = place.importance or place.description or ""

            photos = match.photos if match and match.photos else [
                DRAFT_IMAGES.get(category, DRAFT_IMAGES["attraction"])
            ]

            activities.append(
                Activity(
                    place_id=match.id if match else _draft_place_id(query),
                    place_name=place.display_name,
                    city=place.city or destination,
                    category=category,
                    description=summary,
                    start_time=format_clock(clock),
                    end_time=format_clock(clock + duration),
                    duration=duration,
                    cost=place.estimated_cost if place.estimated_cost is not None else DEFAULT_DRAFT_COST,
                    coordinates=match.coordinates if match else None,
                    photos=photos,
                    rating=(match.rating if match else 0) or DEFAULT_DRAFT_RATING,
                    tips=place.tips or "",
                    best_time=place.best_time or "Anytime",
                    ai_reasoning=summary or "Recommended based on your preferences",
                    order=len(activities) + 1,
                )
            )
            clock += duration + TRANSIT_BUFFER_MINUTES

        return activities

    def assemble_from_candidates(
        self,
        places_by_category: Mapping[str, Sequence[CandidatePlace]],
        start_date: dt.date,
        num_days: int,
    ) -> list[Day]:
        """
        Build days by rotating through the fixed day themes.

        Each day takes up to four places, one per themed category. A place
        is used at most once per itinerary; an exhausted category falls
        back to the first unused place in priority order.
        """
        used_ids: set[str] = set()

        def next_place(category: str) -> Optional[CandidatePlace]:
            for place in places_by_category.get(category, []):
                if place.id not in used_ids:
                    used_ids.add(place.id)
                    return place
            return None

        days = []
        for index in range(num_days):
            theme_name, categories = DAY_THEMES[index % len(DAY_THEMES)]
            activities = []
            clock = DAY_START_MINUTES

            for category in categories[:ACTIVITIES_PER_DAY]:
                place = next_place(category)
                if place is None:
                    for fallback_category in CATEGORY_PRIORITY:
                        place = next_place(fallback_category)
                        if place:
                            break
                if place is None:
                    continue

                duration = 90 if category == "restaurant" else 120
                cost = 800.0 if category == "restaurant" else 500.0
                label = time_slot_label(clock, category)

                activities.append(
                    Activity(
                        place_id=place.id,
                        place_name=place.name,
                        category=category,
                        description=place.address,
                        start_time=format_clock(clock),
                        end_time=format_clock(clock + duration),
                        duration=duration,
                        cost=cost,
                        coordinates=place.coordinates,
                        photos=place.photos or [CATEGORY_IMAGES.get(category, CATEGORY_IMAGES["attraction"])],
                        rating=place.rating or DEFAULT_CANDIDATE_RATING,
                        tips=label,
                        best_time=label,
                        ai_reasoning=CATEGORY_REASONING.get(category, "Must-visit attraction"),
                        order=len(activities) + 1,
                    )
                )
                clock += duration + TRANSIT_BUFFER_MINUTES

            days.append(
                _build_day(index + 1, start_date + dt.timedelta(days=index), f"{theme_name} - Day {index + 1}", activities)
            )

        logger.info(f"Assembled {len(days)} themed days from {len(used_ids)} candidates")
        return days
