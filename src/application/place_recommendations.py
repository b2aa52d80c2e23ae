"""
AI drafting of day-by-day place recommendations.

The LLM proposes real, named places per day; the output is untrusted and
goes through the JSON recovery parser, then each drafted day and place is
validated on its own so one bad entry does not discard the rest. A draft
with no usable day yields None and the caller uses the deterministic
assembler instead.
"""
import logging
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from src.config import settings, Settings
from src.domain.models import DraftDay, DraftPlace, ItineraryDraft
from src.infrastructure.llm_client import LLMClient

logger = logging.getLogger(__name__)


def salvage_draft(raw: Any) -> ItineraryDraft:
    """
    Validate an untrusted draft entry by entry.

    Places that fail validation are dropped, and so are days that are
    malformed or left without any valid place.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("days"), list):
        return ItineraryDraft()

    days = []
    dropped_places = 0
    for raw_day in raw["days"]:
        if not isinstance(raw_day, dict):
            continue

        places = []
        raw_places = raw_day.get("places")
        for raw_place in raw_places if isinstance(raw_places, list) else []:
            try:
                places.append(DraftPlace.model_validate(raw_place))
            except ValidationError:
                dropped_places += 1

        if not places:
            continue
        try:
            day = DraftDay.model_validate({**raw_day, "places": []})
        except ValidationError:
            continue
        day.places = places
        days.append(day)

    if dropped_places:
        logger.warning(f"Dropped {dropped_places} invalid places from AI draft")

    tips = raw.get("overallTips")
    return ItineraryDraft(days=days, overall_tips=tips if isinstance(tips, str) else None)


class PlaceRecommendationService:
    """Drafts itinerary days with an LLM."""

    SYSTEM_PROMPT = (
        "Expert travel planner. Return ONLY valid compact JSON with real places. "
        "No markdown or explanations."
    )

    CATEGORIES = "attraction, temple, museum, park, restaurant, market, beach, monument"

    # Interests included in the prompt, to keep it short
    MAX_PROMPT_INTERESTS = 3

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        app_settings: Optional[Settings] = None,
    ):
        """
        Initialize the drafting service.

        Args:
            llm_client: LLM client; without one every draft request returns None
            app_settings: Optional settings override (for testing)
        """
        self.llm_client = llm_client
        self._settings = app_settings or settings

    def _build_prompt(self, destination: str, days: int, interests: Sequence[str]) -> str:
        interest_line = ""
        if interests:
            interest_line = f"User interests: {', '.join(interests[:self.MAX_PROMPT_INTERESTS])}"

        return f"""Create a {days}-day travel itinerary for {destination}.

IMPORTANT: Each day MUST include a MIX of:
- 1-2 Famous tourist attractions/landmarks
- 1 Temple/religious site or cultural monument
- 1 Famous local restaurant/food spot

Return ONLY valid JSON. Use REAL place names that exist on Google Maps.

Format:
{{"days":[
  {{"dayNumber":1,"theme":"Day Theme","places":[
    {{"place_name":"Exact Place Name","city":"{destination}","category":"attraction","importance":"Why visit","duration":120,"estimatedCost":500}},
    {{"place_name":"Temple/Religious Name","city":"{destination}","category":"temple","importance":"Why visit","duration":60,"estimatedCost":100}},
    {{"place_name":"Restaurant Name","city":"{destination}","category":"restaurant","importance":"Famous for what food","duration":90,"estimatedCost":800}}
  ]}}
]}}

Categories: {self.CATEGORIES}
{interest_line}"""

    async def generate_place_recommendations(
        self,
        destination: str,
        days: int,
        interests: Sequence[str] = (),
    ) -> Optional[ItineraryDraft]:
        """
        Draft up to max_draft_days days for a destination.

        Longer trips get fewer drafted days; the assembler cycles through
        them to fill the rest.

        Returns:
            Validated draft with at least one day, or None
        """
        if self.llm_client is None:
            logger.info("No drafting LLM configured, skipping AI draft")
            return None

        limited_days = max(1, min(days, self._settings.max_draft_days))
        prompt = self._build_prompt(destination, limited_days, interests)

        try:
            logger.info(f"Requesting {limited_days}-day AI draft for {destination}")
            raw = await self.llm_client.generate_structured(
                prompt=prompt,
                system_prompt=self.SYSTEM_PROMPT,
                max_tokens=self._settings.drafting_max_tokens,
            )
        except ValueError as e:
            logger.warning(f"AI draft could not be parsed: {e}")
            return None
        except Exception as e:
            logger.warning(f"AI draft request failed: {e}")
            return None

        draft = salvage_draft(raw)
        if not draft.days:
            logger.warning("AI draft contained no usable days")
            return None

        logger.info(f"AI draft returned {len(draft.days)} days for {destination}")
        return draft
