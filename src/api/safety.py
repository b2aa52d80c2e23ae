"""
Standalone safety validation endpoint.
"""
from fastapi import APIRouter, Depends

from src.api.dependencies import get_safety_engine
from src.application.context_safety import ContextSafetyEngine
from src.application.orchestrator import parse_travel_group
from src.config import settings
from src.domain.models import UserContext
from src.domain.schemas import SafetyValidationRequest, SafetyValidationResponse

router = APIRouter(prefix="/safety", tags=["safety"])


@router.post(
    "/validate",
    response_model=SafetyValidationResponse,
    summary="Validate a plan against the trip context",
)
async def validate_plan(
    request: SafetyValidationRequest,
    engine: ContextSafetyEngine = Depends(get_safety_engine),
) -> SafetyValidationResponse:
    """Run every safety check over the submitted days."""
    context = UserContext(
        destination=request.destination,
        start_date=request.start_date,
        end_date=request.end_date,
        total_budget=(
            request.total_budget if request.total_budget is not None else settings.default_total_budget
        ),
        travel_group=parse_travel_group(request.travel_group, request.accessibility_needs),
        visited_places=request.visited_places,
    )

    result = await engine.validate_context(context, request.days)
    fallbacks = engine.generate_safe_fallback(context, result.restrictions) if result.restrictions else []
    summary = engine.get_safety_status_summary(result)

    return SafetyValidationResponse(
        approved=result.approved,
        safety_score=result.safety_score,
        status=summary.status,
        icon=summary.icon,
        color=summary.color,
        summary=summary.summary,
        context_analysis=result.context_analysis,
        warnings=result.warnings,
        restrictions=result.restrictions,
        alternatives=result.safe_alternatives,
        fallbacks=fallbacks,
    )
