# preflight_engine/local_search/move_evaluator.py

"""
Move evaluation: simulate a move on a copy of the assignment set and compare
spreading scores before and after.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..analysis.time_distribution import TimeDistributionAnalyzer
from ..core.metrics import TimeDistributionStats
from ..core.problem_model import Assignment
from .moves import (
    MoveEvaluationResult,
    MoveKind,
    TimeSpreadingMove,
    group_by_date,
    reschedule,
)

logger = logging.getLogger(__name__)


class MoveEvaluator:
    def __init__(self, analyzer: Optional[TimeDistributionAnalyzer] = None):
        self.analyzer = analyzer or TimeDistributionAnalyzer()

    @property
    def daily_cap(self) -> int:
        return self.analyzer.config.max_daily_exams

    def evaluate_move(
        self, move: TimeSpreadingMove, assignments: Sequence[Assignment]
    ) -> MoveEvaluationResult:
        current_score = self.spreading_score(self.analyzer.compute_stats(assignments))
        simulated = self.simulate_move(move, assignments)
        new_score = self.spreading_score(self.analyzer.compute_stats(simulated))

        improvement = new_score - current_score
        feasible = self.is_feasible(move, assignments)
        if not feasible:
            improvement = min(0.0, improvement)

        return MoveEvaluationResult(
            move=move,
            current_score=current_score,
            new_score=new_score,
            improvement=improvement,
            feasible=feasible,
            constraint_violations=self.daily_cap_violations(simulated),
        )

    @staticmethod
    def spreading_score(stats: TimeDistributionStats) -> float:
        """0-100, higher means exams are spread more evenly"""
        std_component = max(0.0, 100 - stats.std_dev * 10)
        concentration_component = 100 - stats.concentration_score
        return (std_component + concentration_component) / 2

    def simulate_move(
        self, move: TimeSpreadingMove, assignments: Sequence[Assignment]
    ) -> List[Assignment]:
        """Copy of ``assignments`` with the move applied; the input is untouched."""
        return reschedule(assignments, self.destinations(move, assignments))

    def destinations(
        self, move: TimeSpreadingMove, assignments: Sequence[Assignment]
    ) -> Dict[str, date]:
        """
        New date per assignment id the move would write. Redistribute moves
        without a target resolve to the least busy day. Empty when the move
        cannot be applied.
        """
        by_id: Dict[str, Assignment] = {a.id: a for a in assignments}
        source = by_id.get(move.source_assignment_id)
        if source is None:
            return {}

        if move.kind == MoveKind.SWAP:
            partner = by_id.get(move.swap_assignment_id or "")
            if partner is None:
                return {}
            return {source.id: partner.date, partner.id: source.date}

        target = move.target_date
        if target is None and move.kind == MoveKind.REDISTRIBUTE:
            target = self._least_busy_day(assignments)
        return {source.id: target} if target is not None else {}

    def _least_busy_day(self, assignments: Sequence[Assignment]) -> Optional[date]:
        counts = {day: len(items) for day, items in group_by_date(assignments).items()}
        if not counts:
            return None
        average = len(assignments) / len(counts)
        below = [day for day, count in counts.items() if count < average]
        if not below:
            return None
        return min(below, key=lambda day: (counts[day], day))

    def is_feasible(
        self, move: TimeSpreadingMove, assignments: Sequence[Assignment]
    ) -> bool:
        ids = {a.id for a in assignments}
        if move.source_assignment_id not in ids:
            return False
        if move.kind == MoveKind.SWAP and move.swap_assignment_id not in ids:
            return False
        return all(
            day.weekday() < 5 for day in self.destinations(move, assignments).values()
        )

    def daily_cap_violations(self, assignments: Sequence[Assignment]) -> List[str]:
        violations = []
        for day, items in group_by_date(assignments).items():
            if len(items) > self.daily_cap:
                violations.append(
                    f"{day.isoformat()}: {len(items)} exams exceed the daily cap "
                    f"of {self.daily_cap}"
                )
        return violations
