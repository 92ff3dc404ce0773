# backend/app/api/v1/routes/weights.py
"""API endpoints for the adaptive constraint weights."""
from typing import List

from fastapi import APIRouter, Depends, Query

from ....api.deps import get_preflight_service
from ....schemas.preflight import (
    ConstraintWeightRead,
    WeightAdjustRequest,
    WeightAdjustResponse,
    WeightConfiguration,
    WeightHistoryRead,
)
from ....services.preflight_service import PreflightService

router = APIRouter()


@router.get("", response_model=List[ConstraintWeightRead], summary="Get Weights")
def get_weights(service: PreflightService = Depends(get_preflight_service)):
    """Current weight of every registered constraint."""
    return service.get_weights()


@router.post(
    "/adjust", response_model=WeightAdjustResponse, summary="Adjust Weights"
)
def adjust_weights(
    request: WeightAdjustRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """
    Run one adjustment cycle. Weights are reset to base first, so the result
    depends only on the submitted state. ``adjusted`` lists the constraints
    whose weight now differs from base.
    """
    return service.adjust_weights(request)


@router.get(
    "/history", response_model=List[WeightHistoryRead], summary="Weight History"
)
def get_weight_history(
    limit: int = Query(50, ge=1, le=1000),
    service: PreflightService = Depends(get_preflight_service),
):
    return service.get_history(limit)


@router.get(
    "/config", response_model=WeightConfiguration, summary="Export Configuration"
)
def export_weight_configuration(
    service: PreflightService = Depends(get_preflight_service),
):
    return service.export_weights()


@router.put(
    "/config", response_model=WeightConfiguration, summary="Import Configuration"
)
def import_weight_configuration(
    payload: WeightConfiguration,
    service: PreflightService = Depends(get_preflight_service),
):
    """Replace constraints and/or rules; a rejected payload changes nothing."""
    return service.import_weights(payload.model_dump(exclude_none=True))
