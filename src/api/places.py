"""
Candidate ranking endpoint.
"""
from fastapi import APIRouter, Depends

from src.api.dependencies import get_personalization_engine
from src.application.personalization import PersonalizationEngine
from src.domain.schemas import RankPlacesRequest, RankPlacesResponse

router = APIRouter(prefix="/places", tags=["places"])


@router.post(
    "/rank",
    response_model=RankPlacesResponse,
    summary="Rank candidate places for a preference vector",
)
async def rank_places(
    request: RankPlacesRequest,
    engine: PersonalizationEngine = Depends(get_personalization_engine),
) -> RankPlacesResponse:
    ranked = engine.rank_places(request.places, request.preferences)
    return RankPlacesResponse(ranked=ranked, total_candidates=len(request.places))
