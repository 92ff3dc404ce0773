# preflight_engine/core/constraint_types.py

"""
Common constraint types and definitions shared by the scanner, the weight
registry and the adjuster.
"""

from __future__ import annotations
from typing import Any, Dict, Tuple
from dataclasses import dataclass, field, asdict
from enum import Enum


class ConstraintType(Enum):
    HARD = "hard"
    SOFT = "soft"


class ConstraintCategory(Enum):
    LEGAL_COMPLIANCE = "legal_compliance"
    SAFETY_CRITICAL = "safety_critical"
    OPERATIONAL = "operational"
    PREFERENCE = "preference"
    OPTIMIZATION = "optimization"


class ConflictSeverity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConflictType(Enum):
    DUTY_SHIFT = "duty_shift"
    DEPARTMENT = "department"
    TIME_OVERLAP = "time_overlap"
    WORKLOAD = "workload"
    AVAILABILITY = "availability"
    LEGAL_REST = "legal_rest"
    CONTINUOUS_WORK = "continuous_work"


class ConstraintId(Enum):
    """
    Closed set of constraint identities known to the pre-flight engine.
    Each member carries the field name the backend solver uses for it.
    """

    HC1 = ("HC1", "workdaysOnlyExam")
    HC2 = ("HC2", "examinerDepartmentRules")
    HC3 = ("HC3", "twoMainExaminersRequired")
    HC4 = ("HC4", "noExaminerTimeConflict")
    HC5 = ("HC5", "noStudentDayShiftExam")
    HC6 = ("HC6", "consecutiveTwoDaysExam")
    HC7 = ("HC7", "examinerDifferentDepartments")
    HC8 = ("HC8", "backupExaminerDifferentPerson")

    SC1 = ("SC1", "nightShiftTeacherPriorityWeight")
    SC2 = ("SC2", "preferRecommendedExaminer2Weight")
    SC3 = ("SC3", "firstRestDayTeacherPriorityWeight")
    SC4 = ("SC4", "preferRecommendedBackupExaminerWeight")
    SC5 = ("SC5", "secondRestDayTeacherPriorityWeight")
    SC6 = ("SC6", "nonRecommendedExaminer2Weight")
    SC7 = ("SC7", "adminClassTeacherPriorityWeight")
    SC8 = ("SC8", "nonRecommendedBackupExaminerWeight")
    SC9 = ("SC9", "allowDept37CrossUseWeight")
    SC10 = ("SC10", "balanceWorkloadWeight")
    SC11 = ("SC11", "preferLaterDatesWeight")

    def __init__(self, code: str, backend_field: str):
        self.code = code
        self.backend_field = backend_field

    @property
    def is_hard(self) -> bool:
        return self.code.startswith("HC")

    @classmethod
    def from_code(cls, code: str) -> "ConstraintId":
        """Look up a member by its short code, e.g. ``"HC4"``."""
        for member in cls:
            if member.code == code:
                return member
        raise KeyError(f"Unknown constraint code: {code!r}")

    @classmethod
    def from_backend_field(cls, backend_field: str) -> "ConstraintId":
        """Reverse lookup from the backend solver field name."""
        for member in cls:
            if member.backend_field == backend_field:
                return member
        raise KeyError(f"Unknown backend constraint field: {backend_field!r}")


class WeightRangeError(ValueError):
    """Raised when a constraint weight definition has an inconsistent range."""


class WeightInvariantViolation(AssertionError):
    """A weight left its declared range. This is a programming error."""


@dataclass(frozen=True)
class ConflictDetectionResult:
    id: str
    conflict_type: ConflictType
    severity: ConflictSeverity
    description: str
    affected_assignments: Tuple[str, ...] = ()
    affected_teachers: Tuple[str, ...] = ()
    affected_students: Tuple[str, ...] = ()
    suggested_actions: Tuple[str, ...] = ()
    estimated_impact: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.conflict_type.value,
            "severity": self.severity.value,
            "description": self.description,
            "affected_assignments": list(self.affected_assignments),
            "affected_teachers": list(self.affected_teachers),
            "affected_students": list(self.affected_students),
            "suggested_actions": list(self.suggested_actions),
            "estimated_impact": self.estimated_impact,
        }


@dataclass
class ConstraintWeight:
    """
    Weight of a single hard or soft constraint together with the range the
    adjuster is allowed to move it in.
    """

    id: str
    name: str
    constraint_type: ConstraintType
    base_weight: float
    current_weight: float
    priority: int
    category: ConstraintCategory
    is_adjustable: bool
    min_weight: float
    max_weight: float

    @property
    def is_critical(self) -> bool:
        """Safety-critical or priority-1 constraints must always dominate."""
        return (
            self.category == ConstraintCategory.SAFETY_CRITICAL or self.priority == 1
        )

    def clamp(self, value: float) -> float:
        return max(self.min_weight, min(self.max_weight, value))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["constraint_type"] = self.constraint_type.value
        data["category"] = self.category.value
        return data
