# preflight_engine/local_search/move_generator.py

"""
Move generation for the time-spreading local search.

Relocate moves take assignments off the busiest days, swap moves exchange
one assignment between two unevenly loaded days, and redistribute moves
spread part of a peak day onto the least loaded day. Every slice is bounded,
so a single call always terminates quickly.
"""

import logging
import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import LocalSearchConfig
from ..analysis.time_distribution import TimeDistributionAnalyzer
from ..core.metrics import TimeDistributionStats
from ..core.problem_model import Assignment
from .moves import MoveKind, TimeSpreadingMove, group_by_date, reschedule

logger = logging.getLogger(__name__)


class MoveGenerator:
    def __init__(
        self,
        analyzer: Optional[TimeDistributionAnalyzer] = None,
        config: Optional[LocalSearchConfig] = None,
    ):
        self.analyzer = analyzer or TimeDistributionAnalyzer()
        self.config = config or LocalSearchConfig()

    @property
    def ideal_daily_exams(self) -> int:
        return self.analyzer.config.ideal_daily_exams

    def generate_moves(
        self, assignments: Sequence[Assignment], candidate_dates: Iterable[date]
    ) -> List[TimeSpreadingMove]:
        """
        Propose moves for an assignment set, best expected improvement first.

        Returns an empty list when the distribution does not need optimizing.
        Ties are broken by move kind (relocate, swap, redistribute), then by
        the chronological position of the source day, then by assignment id.
        """
        assignments = [a for a in assignments if a.id and a.date is not None]
        stats = self.analyzer.compute_stats(assignments)
        if not self.analyzer.needs_optimization(stats):
            logger.debug("Time distribution is balanced; no moves proposed")
            return []

        by_day = group_by_date(assignments)
        weekday_targets = sorted({d for d in candidate_dates if d.weekday() < 5})

        moves: List[TimeSpreadingMove] = []
        moves.extend(self._relocate_moves(assignments, by_day, weekday_targets, stats))
        moves.extend(self._swap_moves(assignments, by_day, stats))
        moves.extend(
            self._redistribute_moves(assignments, by_day, weekday_targets, stats)
        )

        day_index = {day: i for i, day in enumerate(by_day)}
        source_day = {a.id: a.date for a in assignments}
        moves.sort(
            key=lambda m: (
                -m.expected_improvement,
                m.kind.rank,
                day_index.get(source_day.get(m.source_assignment_id), len(day_index)),
                m.source_assignment_id,
            )
        )
        logger.debug(f"Generated {len(moves)} time-spreading move(s)")
        return moves

    def _relocate_moves(
        self,
        assignments: List[Assignment],
        by_day: Dict[date, List[Assignment]],
        weekday_targets: List[date],
        stats: TimeDistributionStats,
    ) -> List[TimeSpreadingMove]:
        cfg = self.config
        threshold = self.ideal_daily_exams * self.analyzer.config.busy_day_ratio
        busy_days = sorted(
            (day for day, items in by_day.items() if len(items) > threshold),
            key=lambda day: (-len(by_day[day]), day),
        )[: cfg.max_busy_days]

        moves = []
        for busy_day in busy_days:
            targets = sorted(
                (d for d in weekday_targets if d != busy_day),
                key=lambda d: (len(by_day.get(d, ())), d),
            )[: cfg.relocation_targets]
            for assignment in by_day[busy_day][: cfg.assignments_per_busy_day]:
                for target in targets:
                    improvement = self._improvement(
                        stats, reschedule(assignments, {assignment.id: target})
                    )
                    if improvement <= 0:
                        continue
                    moves.append(
                        TimeSpreadingMove(
                            kind=MoveKind.RELOCATE,
                            source_assignment_id=assignment.id,
                            target_date=target,
                            description=(
                                f"Move exam {assignment.id} from busy day "
                                f"{busy_day.isoformat()} to {target.isoformat()}"
                            ),
                            expected_improvement=improvement,
                        )
                    )
        return moves

    def _swap_moves(
        self,
        assignments: List[Assignment],
        by_day: Dict[date, List[Assignment]],
        stats: TimeDistributionStats,
    ) -> List[TimeSpreadingMove]:
        days = [d for d in by_day if d.weekday() < 5]
        min_difference = self.config.min_swap_count_difference
        moves = []
        for i, first_day in enumerate(days):
            for second_day in days[i + 1 :]:
                first, second = by_day[first_day], by_day[second_day]
                if abs(len(first) - len(second)) < min_difference:
                    continue
                if len(first) < len(second):
                    first, second = second, first
                source, partner = first[0], second[0]
                improvement = self._improvement(
                    stats,
                    reschedule(
                        assignments, {source.id: partner.date, partner.id: source.date}
                    ),
                )
                moves.append(
                    TimeSpreadingMove(
                        kind=MoveKind.SWAP,
                        source_assignment_id=source.id,
                        swap_assignment_id=partner.id,
                        description=(
                            f"Swap exams between {source.date.isoformat()} "
                            f"and {partner.date.isoformat()} to balance the load"
                        ),
                        expected_improvement=improvement,
                    )
                )
        return moves

    def _redistribute_moves(
        self,
        assignments: List[Assignment],
        by_day: Dict[date, List[Assignment]],
        weekday_targets: List[date],
        stats: TimeDistributionStats,
    ) -> List[TimeSpreadingMove]:
        threshold = self.ideal_daily_exams * self.analyzer.config.peak_day_ratio
        pool = sorted({d for d in by_day if d.weekday() < 5} | set(weekday_targets))

        moves = []
        for peak_day, items in by_day.items():
            if len(items) <= threshold:
                continue
            others = [d for d in pool if d != peak_day]
            if not others:
                continue
            target = min(others, key=lambda d: (len(by_day.get(d, ())), d))
            share = math.floor(len(items) * self.config.redistribute_fraction)
            for assignment in items[:share]:
                improvement = self._improvement(
                    stats, reschedule(assignments, {assignment.id: target})
                )
                if improvement <= 0:
                    continue
                moves.append(
                    TimeSpreadingMove(
                        kind=MoveKind.REDISTRIBUTE,
                        source_assignment_id=assignment.id,
                        target_date=target,
                        description=(
                            f"Redistribute exam {assignment.id} from peak day "
                            f"{peak_day.isoformat()} to {target.isoformat()}"
                        ),
                        expected_improvement=improvement,
                    )
                )
        return moves

    def _improvement(
        self, before: TimeDistributionStats, simulated: List[Assignment]
    ) -> float:
        after = self.analyzer.compute_stats(simulated)
        return (before.std_dev - after.std_dev) * 10 + (
            before.concentration_score - after.concentration_score
        )
