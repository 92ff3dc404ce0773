# backend/app/services/preflight_service.py
"""
Service exposing the pre-flight engine to the API layer: schedule validation,
correction suggestions, adaptive constraint weights and time-spreading moves.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Sequence

from preflight_engine.adaptive.weight_adjuster import SystemState, WeightAdjuster
from preflight_engine.analysis.conflict_scanner import ConflictScanner
from preflight_engine.analysis.risk_aggregator import RiskAggregator
from preflight_engine.analysis.time_distribution import TimeDistributionAnalyzer
from preflight_engine.config import (
    LocalSearchConfig,
    PreflightStage,
    TimeConcentrationConfig,
)
from preflight_engine.core.constraint_types import WeightInvariantViolation
from preflight_engine.core.metrics import PreValidationResult, empty_severity_counts
from preflight_engine.core.problem_model import Assignment
from preflight_engine.local_search.move_evaluator import MoveEvaluator
from preflight_engine.local_search.move_generator import MoveGenerator
from preflight_engine.local_search.repair import LocalSearchRepair
from preflight_engine.utils.logging import PreflightLogger

from ..config import Settings
from ..core.exceptions import (
    EngineInvariantError,
    InputValidationError,
    WeightConfigurationError,
)
from ..schemas.preflight import (
    AssignmentSchema,
    MoveEvaluationRequest,
    MoveProposalRequest,
    RepairRequest,
    SystemStateSchema,
    ValidationRequest,
    WeightAdjustRequest,
)

logger = logging.getLogger(__name__)


def _duplicates(ids: Sequence[str]) -> List[str]:
    return sorted(i for i, count in Counter(ids).items() if count > 1)


class PreflightService:
    """Runs the engine stages for one request against a shared weight adjuster."""

    def __init__(self, settings: Settings, adjuster: WeightAdjuster):
        self.settings = settings
        self.adjuster = adjuster
        self.preflight_logger = PreflightLogger("preflight_service")

        self.analyzer = TimeDistributionAnalyzer(
            TimeConcentrationConfig(
                ideal_daily_exams=settings.IDEAL_DAILY_EXAMS,
                max_daily_exams=settings.MAX_DAILY_EXAMS,
            )
        )
        search_config = LocalSearchConfig(max_moves=settings.MAX_REPAIR_MOVES)
        self.scanner = ConflictScanner(preflight_logger=self.preflight_logger)
        self.aggregator = RiskAggregator()
        self.generator = MoveGenerator(self.analyzer, search_config)
        self.evaluator = MoveEvaluator(self.analyzer)
        self.repair = LocalSearchRepair(
            self.generator,
            self.evaluator,
            search_config,
            preflight_logger=self.preflight_logger,
        )

    # --- Validation ---

    def validate(self, request: ValidationRequest) -> PreValidationResult:
        assignments = self._to_assignments(request.assignments)
        self._ensure_unique("teacher", [t.id for t in request.teachers])
        self._ensure_unique("student", [s.id for s in request.students])

        conflicts = self.scanner.scan(
            assignments,
            [t.to_model() for t in request.teachers],
            [s.to_model() for s in request.students],
        )
        result = self.aggregator.aggregate(conflicts)
        logger.info(
            f"Validated {len(assignments)} assignment(s): "
            f"{result.total_conflicts} conflict(s), "
            f"risk {result.overall_risk_score:.1f}"
        )
        return result

    def suggestions(self, request: ValidationRequest) -> Dict[str, Any]:
        result = self.validate(request)
        return {
            "validation": result.to_dict(),
            "suggestions": [
                s.to_dict()
                for s in self.aggregator.generate_correction_suggestions(
                    result.conflicts
                )
            ],
        }

    # --- Weights ---

    def get_weights(self) -> List[Dict[str, Any]]:
        return [w.to_dict() for w in self.adjuster.get_weights().values()]

    def adjust_weights(self, request: WeightAdjustRequest) -> Dict[str, Any]:
        if request.validation is not None:
            state = SystemState.from_validation_result(
                self.validate(request.validation)
            )
        elif request.state is not None:
            state = self._to_system_state(request.state)
        else:
            raise InputValidationError(
                "Either a system state or a schedule to validate is required"
            )

        try:
            adjusted = self.adjuster.adjust_weights(state)
        except WeightInvariantViolation as e:
            logger.error(f"Weight adjustment broke an invariant: {e}", exc_info=True)
            error = EngineInvariantError.from_exception(e)
            raise error.with_context(stage=PreflightStage.ADJUST_WEIGHTS.value) from e

        return {
            "adjusted": adjusted,
            "weights": self.get_weights(),
            "recommendations": self.adjuster.get_recommendations(state),
        }

    def get_history(self, limit: int) -> List[Dict[str, Any]]:
        return [h.to_dict() for h in self.adjuster.get_history(limit)]

    def export_weights(self) -> Dict[str, Any]:
        return self.adjuster.export_configuration()

    def import_weights(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.adjuster.import_configuration(payload):
            raise WeightConfigurationError(
                "Weight configuration was rejected; the current one is unchanged"
            ).with_context(
                constraints=len(payload.get("constraints") or []),
                rules=len(payload.get("rules") or []),
            )
        return self.adjuster.export_configuration()

    # --- Moves ---

    def propose_moves(self, request: MoveProposalRequest) -> Dict[str, Any]:
        assignments = self._to_assignments(request.assignments)
        stats = self.analyzer.compute_stats(assignments)
        moves = self.generator.generate_moves(assignments, request.candidate_dates)
        return {
            "stats": stats.to_dict(),
            "needs_optimization": self.analyzer.needs_optimization(stats),
            "suggestions": self.analyzer.suggestions(stats),
            "moves": [m.to_dict() for m in moves],
        }

    def evaluate_move(self, request: MoveEvaluationRequest) -> Dict[str, Any]:
        assignments = self._to_assignments(request.assignments)
        result = self.evaluator.evaluate_move(request.move.to_model(), assignments)
        return result.to_dict()

    def run_repair(self, request: RepairRequest) -> Dict[str, Any]:
        assignments = self._to_assignments(request.assignments)
        result = self.repair.run(
            assignments, request.candidate_dates, max_moves=request.max_moves
        )
        data = result.to_dict()
        data["assignments"] = [
            AssignmentSchema.from_model(a) for a in result.assignments
        ]
        return data

    # --- Helpers ---

    def _to_assignments(self, records: List[AssignmentSchema]) -> List[Assignment]:
        self._ensure_unique("assignment", [a.id for a in records])
        return [a.to_model() for a in records]

    @staticmethod
    def _ensure_unique(kind: str, ids: Sequence[str]) -> None:
        duplicates = _duplicates(ids)
        if duplicates:
            raise InputValidationError(
                f"Duplicate {kind} ids in request",
                errors=[f"duplicate {kind} id: {i}" for i in duplicates],
            ).with_context(record=kind)

    @staticmethod
    def _to_system_state(state: SystemStateSchema) -> SystemState:
        by_severity = empty_severity_counts()
        by_severity.update(state.conflicts_by_severity)
        by_type = dict(state.conflicts_by_type)
        conflict_count = state.conflict_count
        if conflict_count is None:
            conflict_count = sum(by_severity.values()) or sum(by_type.values())
        return SystemState(
            conflict_count=conflict_count,
            conflicts_by_severity=by_severity,
            conflicts_by_type=by_type,
            overall_risk_score=state.overall_risk_score,
            scheduling_success=state.scheduling_success,
        )
