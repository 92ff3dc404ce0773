# preflight_engine/analysis/risk_aggregator.py

"""
Risk aggregation over a conflict list: severity counts, a 0-100 risk score,
recommendations and a resolution-time estimate. Also turns suggested actions
into prioritized correction suggestions.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import RiskConfig
from ..core.constraint_types import (
    ConflictDetectionResult,
    ConflictSeverity,
    ConflictType,
)
from ..core.metrics import (
    CorrectionSuggestion,
    PreValidationResult,
    empty_severity_counts,
)

logger = logging.getLogger(__name__)

_SUGGESTION_BASE_PRIORITY = {
    ConflictSeverity.CRITICAL: 100,
    ConflictSeverity.HIGH: 80,
    ConflictSeverity.MEDIUM: 60,
    ConflictSeverity.LOW: 40,
}

_SUGGESTION_BASE_IMPROVEMENT = {
    ConflictSeverity.CRITICAL: 90,
    ConflictSeverity.HIGH: 70,
    ConflictSeverity.MEDIUM: 50,
    ConflictSeverity.LOW: 30,
}

# minutes of manual work per action, by conflict type
_ACTION_EFFORT = {
    ConflictType.DUTY_SHIFT: 15,
    ConflictType.DEPARTMENT: 10,
    ConflictType.TIME_OVERLAP: 20,
    ConflictType.WORKLOAD: 25,
    ConflictType.AVAILABILITY: 15,
    ConflictType.LEGAL_REST: 10,
    ConflictType.CONTINUOUS_WORK: 20,
}


class RiskAggregator:
    def __init__(self, config: Optional[RiskConfig] = None):
        self.config = config or RiskConfig()

    def aggregate(
        self, conflicts: Sequence[ConflictDetectionResult]
    ) -> PreValidationResult:
        """Fold a conflict list into a PreValidationResult."""
        conflicts = list(conflicts)
        by_severity = self.count_by_severity(conflicts)

        result = PreValidationResult(
            is_valid=by_severity[ConflictSeverity.CRITICAL] == 0,
            total_conflicts=len(conflicts),
            conflicts_by_severity=by_severity,
            conflicts=conflicts,
            overall_risk_score=self.risk_score(conflicts),
            recommendations=self.recommendations(conflicts, by_severity),
            estimated_resolution_time=self.resolution_time(conflicts),
        )
        logger.debug(
            f"Aggregated {result.total_conflicts} conflict(s): "
            f"valid={result.is_valid}, risk={result.overall_risk_score:.1f}"
        )
        return result

    def count_by_severity(
        self, conflicts: Sequence[ConflictDetectionResult]
    ) -> Dict[ConflictSeverity, int]:
        counts = empty_severity_counts()
        for conflict in conflicts:
            counts[conflict.severity] += 1
        return counts

    def risk_score(self, conflicts: Sequence[ConflictDetectionResult]) -> float:
        weights = self.config.severity_weights
        total = sum(
            weights[c.severity.value] * (c.estimated_impact / 100) for c in conflicts
        )
        return min(self.config.max_risk_score, total * self.config.risk_multiplier)

    def recommendations(
        self,
        conflicts: Sequence[ConflictDetectionResult],
        by_severity: Optional[Dict[ConflictSeverity, int]] = None,
    ) -> List[str]:
        by_severity = by_severity or self.count_by_severity(conflicts)
        critical = by_severity[ConflictSeverity.CRITICAL]
        high = by_severity[ConflictSeverity.HIGH]

        recommendations = []
        if critical > 0:
            recommendations.append(
                f"{critical} critical conflict(s) must be fixed immediately; "
                "they will make scheduling fail"
            )
        if high > 0:
            recommendations.append(
                f"Address {high} high-priority conflict(s) to improve schedule quality"
            )
        if len(conflicts) > self.config.many_conflicts_threshold:
            recommendations.append(
                "Many conflicts detected; resolve them in batches "
                "or revise the scheduling strategy"
            )
        return recommendations

    def resolution_time(self, conflicts: Sequence[ConflictDetectionResult]) -> int:
        minutes = self.config.resolution_minutes
        return sum(minutes[c.severity.value] for c in conflicts)

    def generate_correction_suggestions(
        self, conflicts: Sequence[ConflictDetectionResult]
    ) -> List[CorrectionSuggestion]:
        """One suggestion per suggested action, highest priority first."""
        suggestions = []
        for conflict in conflicts:
            for index, action in enumerate(conflict.suggested_actions):
                suggestions.append(
                    CorrectionSuggestion(
                        conflict_id=conflict.id,
                        action=action,
                        priority=_SUGGESTION_BASE_PRIORITY[conflict.severity]
                        - index * 5,
                        estimated_effort=_ACTION_EFFORT.get(conflict.conflict_type, 15),
                        expected_improvement=max(
                            10,
                            _SUGGESTION_BASE_IMPROVEMENT[conflict.severity]
                            - index * 15,
                        ),
                    )
                )
        # sorted() is stable, so equal priorities keep conflict order
        return sorted(suggestions, key=lambda s: -s.priority)
