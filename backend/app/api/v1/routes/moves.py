# backend/app/api/v1/routes/moves.py
"""API endpoints for time-spreading moves and local-search repair."""
from fastapi import APIRouter, Depends

from ....api.deps import get_preflight_service
from ....schemas.preflight import (
    MoveEvaluationRead,
    MoveEvaluationRequest,
    MoveProposalRequest,
    MoveProposalResponse,
    RepairRequest,
    RepairResponse,
)
from ....services.preflight_service import PreflightService

router = APIRouter()


@router.post(
    "/propose", response_model=MoveProposalResponse, summary="Propose Moves"
)
def propose_moves(
    request: MoveProposalRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """Ranked relocate/swap/redistribute proposals, best first."""
    return service.propose_moves(request)


@router.post(
    "/evaluate", response_model=MoveEvaluationRead, summary="Evaluate Move"
)
def evaluate_move(
    request: MoveEvaluationRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """Simulate one move. Infeasible moves are reported, not rejected."""
    return service.evaluate_move(request)


@router.post("/repair", response_model=RepairResponse, summary="Repair Schedule")
def repair_schedule(
    request: RepairRequest,
    service: PreflightService = Depends(get_preflight_service),
):
    """
    Apply improving moves until the schedule is balanced or the move budget
    runs out. The submitted schedule is never modified.
    """
    return service.run_repair(request)
