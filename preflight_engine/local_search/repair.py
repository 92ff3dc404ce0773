# preflight_engine/local_search/repair.py

"""
Bounded propose/evaluate/apply loop over the time-spreading neighborhood.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config import LocalSearchConfig, PreflightStage, get_logger
from ..core.metrics import TimeDistributionStats
from ..core.problem_model import Assignment
from ..utils.logging import PreflightLogger, get_preflight_logger
from .move_evaluator import MoveEvaluator
from .move_generator import MoveGenerator
from .moves import MoveEvaluationResult, TimeSpreadingMove

logger = get_logger("local_search.repair")


@dataclass
class RepairResult:
    assignments: List[Assignment]
    applied_moves: List[MoveEvaluationResult] = field(default_factory=list)
    initial_stats: TimeDistributionStats = field(default_factory=TimeDistributionStats)
    final_stats: TimeDistributionStats = field(default_factory=TimeDistributionStats)
    iterations: int = 0
    stop_reason: str = ""

    @property
    def total_improvement(self) -> float:
        return sum(result.improvement for result in self.applied_moves)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied_moves": [m.to_dict() for m in self.applied_moves],
            "initial_stats": self.initial_stats.to_dict(),
            "final_stats": self.final_stats.to_dict(),
            "iterations": self.iterations,
            "stop_reason": self.stop_reason,
            "total_improvement": self.total_improvement,
        }


class LocalSearchRepair:
    """
    Hill climber over relocate/swap/redistribute moves.

    Each iteration applies the feasible move with the largest improvement
    that does not add daily-cap violations. See the STOP_* reasons for
    when the loop ends.
    """

    STOP_BALANCED = "balanced"
    STOP_NO_IMPROVING_MOVE = "no_improving_move"
    STOP_BUDGET_EXHAUSTED = "budget_exhausted"

    def __init__(
        self,
        generator: Optional[MoveGenerator] = None,
        evaluator: Optional[MoveEvaluator] = None,
        config: Optional[LocalSearchConfig] = None,
        preflight_logger: Optional[PreflightLogger] = None,
    ):
        self.config = config or LocalSearchConfig()
        self.generator = generator or MoveGenerator(config=self.config)
        self.evaluator = evaluator or MoveEvaluator(self.generator.analyzer)
        self.preflight_logger = preflight_logger or get_preflight_logger()

    def run(
        self,
        assignments: Sequence[Assignment],
        candidate_dates: Iterable[date],
        max_moves: Optional[int] = None,
    ) -> RepairResult:
        budget = self.config.max_moves if max_moves is None else max(0, max_moves)
        candidate_dates = list(candidate_dates)
        analyzer = self.generator.analyzer

        current = list(assignments)
        result = RepairResult(
            assignments=current, initial_stats=analyzer.compute_stats(current)
        )

        with self.preflight_logger.stage_context(
            PreflightStage.LOCAL_SEARCH, {"assignments": len(current), "budget": budget}
        ):
            result.stop_reason = self.STOP_BUDGET_EXHAUSTED
            for iteration in range(budget):
                result.iterations = iteration + 1
                with self.preflight_logger.operation_timer("generate_moves"):
                    moves = self.generator.generate_moves(current, candidate_dates)
                if not moves:
                    result.stop_reason = self.STOP_BALANCED
                    break

                with self.preflight_logger.operation_timer("evaluate_moves"):
                    best = self._select_move(moves, current)
                if best is None:
                    result.stop_reason = self.STOP_NO_IMPROVING_MOVE
                    break

                current = self.evaluator.simulate_move(best.move, current)
                result.applied_moves.append(best)
                self.preflight_logger.increment_counter("moves_applied")
                logger.debug(
                    f"Applied {best.move.kind.value} move on "
                    f"{best.move.source_assignment_id} (+{best.improvement:.3f})"
                )

        result.assignments = current
        result.final_stats = analyzer.compute_stats(current)
        logger.info(
            f"Local search finished after {len(result.applied_moves)} move(s): "
            f"{result.stop_reason}"
        )
        return result

    def _select_move(
        self, moves: List[TimeSpreadingMove], assignments: List[Assignment]
    ) -> Optional[MoveEvaluationResult]:
        baseline_violations = len(self.evaluator.daily_cap_violations(assignments))
        best: Optional[MoveEvaluationResult] = None
        for move in moves:
            evaluation = self.evaluator.evaluate_move(move, assignments)
            if not evaluation.feasible:
                continue
            if evaluation.improvement <= self.config.min_improvement:
                continue
            if len(evaluation.constraint_violations) > baseline_violations:
                continue
            # moves arrive in preference order, so only a strict gain replaces
            if best is None or evaluation.improvement > best.improvement:
                best = evaluation
        return best
