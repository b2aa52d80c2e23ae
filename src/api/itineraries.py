"""
Itinerary generation endpoint.
"""
import logging

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_orchestrator
from src.application.context_safety import sanitize_user_data
from src.application.orchestrator import ItineraryOrchestrator
from src.domain.models import Itinerary
from src.domain.schemas import GenerateItineraryRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/itineraries", tags=["itineraries"])


@router.post(
    "/generate",
    response_model=Itinerary,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a personalized, safety-checked itinerary",
    description="Draft or search places, assemble days, then validate them against the trip context.",
)
async def generate_itinerary(
    request: GenerateItineraryRequest,
    orchestrator: ItineraryOrchestrator = Depends(get_orchestrator),
) -> Itinerary:
    """
    Generate an itinerary.

    The response always contains an itinerary; unsafe plans come back
    with safety_approved=false plus warnings and fallbacks rather than
    an error.
    """
    logger.info(
        f"Generate itinerary request: "
        f"{sanitize_user_data(request.model_dump(mode='json', exclude={'preferences'}))}"
    )
    return await orchestrator.generate_itinerary(request, request.preferences)
