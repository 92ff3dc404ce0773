# preflight_engine/core/metrics.py

"""
Result structures of a pre-flight pass.
Designed for easy serialization to JSON for frontend consumption.
"""

from typing import Dict, List, Any
from dataclasses import dataclass, field, asdict
from datetime import date

from .constraint_types import ConflictDetectionResult, ConflictSeverity


def empty_severity_counts() -> Dict[ConflictSeverity, int]:
    return {severity: 0 for severity in ConflictSeverity}


@dataclass
class PreValidationResult:
    """Aggregate outcome of a multi-dimensional conflict scan."""

    is_valid: bool = True
    total_conflicts: int = 0
    conflicts_by_severity: Dict[ConflictSeverity, int] = field(
        default_factory=empty_severity_counts
    )
    conflicts: List[ConflictDetectionResult] = field(default_factory=list)
    overall_risk_score: float = 0.0
    recommendations: List[str] = field(default_factory=list)
    estimated_resolution_time: int = 0  # minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "total_conflicts": self.total_conflicts,
            "conflicts_by_severity": {
                severity.value: count
                for severity, count in self.conflicts_by_severity.items()
            },
            "conflicts": [c.to_dict() for c in self.conflicts],
            "overall_risk_score": self.overall_risk_score,
            "recommendations": list(self.recommendations),
            "estimated_resolution_time": self.estimated_resolution_time,
        }


@dataclass
class CorrectionSuggestion:
    conflict_id: str
    action: str
    priority: int
    estimated_effort: int  # minutes
    expected_improvement: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TimeDistributionStats:
    """
    Per-day exam counts and dispersion statistics of an assignment set.
    ``daily_counts`` is ordered by day.
    """

    daily_counts: Dict[date, int] = field(default_factory=dict)
    mean: float = 0.0
    variance: float = 0.0
    std_dev: float = 0.0
    concentration_score: float = 0.0  # 0-100, lower is better
    total_exams: int = 0
    active_days: int = 0

    @property
    def daily_exam_count(self) -> List[int]:
        return list(self.daily_counts.values())

    @property
    def max_exams_per_day(self) -> int:
        return max(self.daily_counts.values(), default=0)

    @property
    def min_exams_per_day(self) -> int:
        return min(self.daily_counts.values(), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_counts": {d.isoformat(): c for d, c in self.daily_counts.items()},
            "mean": self.mean,
            "variance": self.variance,
            "std_dev": self.std_dev,
            "concentration_score": self.concentration_score,
            "total_exams": self.total_exams,
            "active_days": self.active_days,
            "max_exams_per_day": self.max_exams_per_day,
            "min_exams_per_day": self.min_exams_per_day,
        }
