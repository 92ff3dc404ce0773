# preflight_engine/core/__init__.py

"""
Core data structures of the pre-flight engine
"""

from .problem_model import (
    Assignment,
    DutyRotation,
    Student,
    Teacher,
    UnavailablePeriod,
    exam_window,
    parse_slot_start,
    shift_date,
)
from .constraint_types import (
    ConflictDetectionResult,
    ConflictSeverity,
    ConflictType,
    ConstraintCategory,
    ConstraintId,
    ConstraintType,
    ConstraintWeight,
    WeightInvariantViolation,
    WeightRangeError,
)
from .constraint_registry import WeightRegistry, default_constraint_weights
from .metrics import (
    CorrectionSuggestion,
    PreValidationResult,
    TimeDistributionStats,
    empty_severity_counts,
)

__all__ = [
    # Problem model
    "Assignment",
    "DutyRotation",
    "Student",
    "Teacher",
    "UnavailablePeriod",
    "exam_window",
    "parse_slot_start",
    "shift_date",
    # Constraint types
    "ConflictDetectionResult",
    "ConflictSeverity",
    "ConflictType",
    "ConstraintCategory",
    "ConstraintId",
    "ConstraintType",
    "ConstraintWeight",
    "WeightInvariantViolation",
    "WeightRangeError",
    # Weights
    "WeightRegistry",
    "default_constraint_weights",
    # Results
    "CorrectionSuggestion",
    "PreValidationResult",
    "TimeDistributionStats",
    "empty_severity_counts",
]
