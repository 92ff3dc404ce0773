# backend/app/api/v1/routes/validation.py
"""API endpoints for pre-flight validation of a candidate schedule."""
from fastapi import APIRouter, Depends

from ....api.deps import get_preflight_service
from ....schemas.preflight import (
    SuggestionsResponse,
    ValidationRequest,
    ValidationResponse,
)
from ....services.preflight_service import PreflightService

router = APIRouter()


@router.post("", response_model=ValidationResponse, summary="Validate Schedule")
def validate_schedule(
    request: ValidationRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """
    Scan the assignments for conflicts and fold them into a risk summary.
    A schedule is valid when it has no critical conflicts.
    """
    return service.validate(request).to_dict()


@router.post(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Validate and Suggest Corrections",
)
def correction_suggestions(
    request: ValidationRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """Validation result plus one ranked correction per suggested action."""
    return service.suggestions(request)
