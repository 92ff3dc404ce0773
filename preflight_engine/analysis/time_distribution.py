# preflight_engine/analysis/time_distribution.py

"""
Time distribution analysis for exam assignments.

Computes per-day exam counts and dispersion statistics, decides whether a
schedule is concentrated enough to warrant a local-search pass, and scores
the time-concentration soft constraint. Statistics are recomputed from
scratch on every call.
"""

import logging
import math
from collections import Counter
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..config import TimeConcentrationConfig
from ..core.metrics import TimeDistributionStats
from ..core.problem_model import Assignment

logger = logging.getLogger(__name__)


class TimeDistributionAnalyzer:
    """Stateless calculator of time-distribution statistics."""

    def __init__(self, config: Optional[TimeConcentrationConfig] = None):
        self.config = config or TimeConcentrationConfig()

    def compute_stats(self, assignments: Iterable[Assignment]) -> TimeDistributionStats:
        counts = Counter(a.date for a in assignments if a.date is not None)
        daily_counts: Dict = {day: counts[day] for day in sorted(counts)}
        return self.stats_from_counts(daily_counts)

    def stats_from_counts(self, daily_counts: Dict) -> TimeDistributionStats:
        values = np.array(list(daily_counts.values()), dtype=float)
        total = int(values.sum()) if values.size else 0
        active_days = int(values.size)

        if active_days == 0:
            return TimeDistributionStats(daily_counts=dict(daily_counts))

        mean = float(values.mean())
        variance = float(np.var(values))
        std_dev = math.sqrt(variance)

        # Worst case: every exam on a single day among two
        max_possible_std = total / 2.0
        concentration = (
            min(100.0, std_dev / max_possible_std * 100.0)
            if max_possible_std > 0
            else 0.0
        )

        return TimeDistributionStats(
            daily_counts=dict(daily_counts),
            mean=mean,
            variance=variance,
            std_dev=std_dev,
            concentration_score=concentration,
            total_exams=total,
            active_days=active_days,
        )

    def needs_optimization(self, stats: TimeDistributionStats) -> bool:
        cfg = self.config
        has_busy_day = any(
            count > cfg.ideal_daily_exams * cfg.busy_day_ratio
            for count in stats.daily_exam_count
        )
        is_concentrated = stats.concentration_score >= cfg.concentration_threshold * 100
        has_high_spread = stats.std_dev >= cfg.ideal_daily_variance * 2
        return has_busy_day or is_concentrated or has_high_spread

    def concentration_penalty(self, assignments: List[Assignment]) -> float:
        """
        Penalty of the time-concentration soft constraint. Higher means exams
        are more concentrated; capped at ``max_penalty_score``.
        """
        cfg = self.config
        if not cfg.enabled or not assignments:
            return 0.0

        stats = self.compute_stats(assignments)
        counts = np.array(stats.daily_exam_count, dtype=float)

        std_penalty = stats.std_dev**2 * cfg.penalty_multiplier
        over_ideal = counts[counts > cfg.ideal_daily_exams] - cfg.ideal_daily_exams
        over_max = counts[counts > cfg.max_daily_exams] - cfg.max_daily_exams
        excess_penalty = float(np.sum(over_ideal**2))
        max_excess_penalty = float(np.sum(over_max**3) * 10)

        total = (std_penalty + excess_penalty + max_excess_penalty) * cfg.weight / 100
        return min(total, cfg.max_penalty_score)

    def suggestions(self, stats: TimeDistributionStats) -> List[str]:
        cfg = self.config
        suggestions = []

        over_cap = [c for c in stats.daily_exam_count if c > cfg.max_daily_exams]
        if over_cap:
            suggestions.append(
                f"{len(over_cap)} day(s) exceed the daily maximum of "
                f"{cfg.max_daily_exams} exams; spread them to other dates"
            )
        if stats.concentration_score > cfg.concentration_threshold * 100:
            suggestions.append(
                "Exams are heavily concentrated; add exam dates or redistribute"
            )
        if stats.std_dev > cfg.ideal_daily_variance * 1.5:
            suggestions.append(
                f"Daily exam counts vary widely (std dev {stats.std_dev:.2f}); "
                "balance the number of exams per day"
            )
        if stats.active_days < 3 and stats.total_exams > 10:
            suggestions.append(
                "Too few exam dates; add dates to spread the examiner workload"
            )
        return suggestions

    def optimization_impact(
        self, stats: TimeDistributionStats, target_daily_limit: Optional[int] = None
    ) -> Dict[str, float]:
        """Expected statistics after an ideal spread at ``target_daily_limit``."""
        limit = target_daily_limit or self.config.ideal_daily_exams
        if stats.total_exams == 0 or limit <= 0:
            return {
                "active_days": 0,
                "mean": 0.0,
                "std_dev": 0.0,
                "concentration_score": 0.0,
            }

        optimal_days = math.ceil(stats.total_exams / limit)
        base, remainder = divmod(stats.total_exams, optimal_days)
        counts = np.array(
            [base + 1 if i < remainder else base for i in range(optimal_days)],
            dtype=float,
        )
        optimal_std = float(np.std(counts))

        if stats.std_dev > 0:
            concentration = min(
                30.0, optimal_std / stats.std_dev * stats.concentration_score
            )
        else:
            concentration = 0.0

        return {
            "active_days": optimal_days,
            "mean": float(counts.mean()),
            "std_dev": optimal_std,
            "concentration_score": concentration,
        }
