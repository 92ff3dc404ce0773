# preflight_engine/core/constraint_registry.py

"""
Weight Registry - process-scoped store of hard/soft constraint weights.
The registry is populated with the default HC/SC constraints at start-up and
mutated only by the WeightAdjuster.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .constraint_types import (
    ConstraintCategory,
    ConstraintId,
    ConstraintType,
    ConstraintWeight,
    WeightInvariantViolation,
    WeightRangeError,
)

logger = logging.getLogger(__name__)


def _hard(
    cid: ConstraintId,
    name: str,
    weight: float,
    priority: int,
    category: ConstraintCategory,
    min_weight: Optional[float] = None,
    max_weight: Optional[float] = None,
) -> ConstraintWeight:
    adjustable = min_weight is not None and max_weight is not None
    return ConstraintWeight(
        id=cid.code,
        name=name,
        constraint_type=ConstraintType.HARD,
        base_weight=weight,
        current_weight=weight,
        priority=priority,
        category=category,
        is_adjustable=adjustable,
        min_weight=min_weight if adjustable else weight,
        max_weight=max_weight if adjustable else weight,
    )


def _soft(
    cid: ConstraintId,
    name: str,
    weight: float,
    priority: int,
    category: ConstraintCategory,
    min_weight: float,
    max_weight: float,
) -> ConstraintWeight:
    return ConstraintWeight(
        id=cid.code,
        name=name,
        constraint_type=ConstraintType.SOFT,
        base_weight=weight,
        current_weight=weight,
        priority=priority,
        category=category,
        is_adjustable=True,
        min_weight=min_weight,
        max_weight=max_weight,
    )


def default_constraint_weights() -> List[ConstraintWeight]:
    """
    Default weights. Non-critical constraints never exceed 2000 while every
    critical one stays at or above 2500, so dominance holds at base weights.
    """
    c = ConstraintId
    legal = ConstraintCategory.LEGAL_COMPLIANCE
    safety = ConstraintCategory.SAFETY_CRITICAL
    ops = ConstraintCategory.OPERATIONAL
    pref = ConstraintCategory.PREFERENCE
    opt = ConstraintCategory.OPTIMIZATION
    return [
        _hard(c.HC1, "Weekday exams only", 5000, 1, legal),
        _hard(c.HC2, "Examiner department rule", 5000, 1, legal),
        _hard(c.HC3, "Two main examiners required", 1000, 2, legal, 800, 2000),
        _hard(c.HC4, "No day-shift examiner", 5000, 1, safety, 3000, 10000),
        _hard(c.HC5, "No exam on student day shift", 3000, 1, safety, 2500, 6000),
        _hard(c.HC6, "Exam on two consecutive days", 1000, 2, ops, 500, 2000),
        _hard(c.HC7, "Examiners from other departments", 1000, 2, legal, 800, 2000),
        _hard(c.HC8, "Backup examiner is a different person", 5000, 1, legal),
        _soft(c.SC1, "Night-shift examiner priority", 100, 3, pref, 50, 200),
        _soft(c.SC2, "Recommended dept for examiner 2", 90, 3, pref, 45, 180),
        _soft(c.SC3, "First rest-day examiner priority", 80, 3, pref, 40, 160),
        _soft(c.SC4, "Recommended dept for backup examiner", 70, 4, pref, 35, 140),
        _soft(c.SC5, "Second rest-day examiner priority", 60, 4, pref, 30, 120),
        _soft(c.SC6, "Fallback dept for examiner 2", 50, 4, pref, 25, 100),
        _soft(c.SC7, "Administrative examiner priority", 40, 5, pref, 20, 80),
        _soft(c.SC8, "Fallback dept for backup examiner", 30, 5, pref, 15, 60),
        _soft(c.SC9, "Departments 3 and 7 cross-use", 200, 3, ops, 100, 300),
        _soft(c.SC10, "Workload balance", 150, 3, opt, 75, 400),
        _soft(c.SC11, "Prefer later dates", 50, 5, opt, 25, 100),
    ]


class WeightRegistry:
    """Registry of constraint weights with range-checked mutation."""

    def __init__(self, weights: Optional[List[ConstraintWeight]] = None):
        self._weights: Dict[str, ConstraintWeight] = {}
        for weight in default_constraint_weights() if weights is None else weights:
            self.register(weight)
        logger.info(
            f"Weight registry initialized with {len(self._weights)} constraints."
        )

    def register(self, weight: ConstraintWeight) -> None:
        """Add or replace a constraint weight after validating its range."""
        if weight.min_weight > weight.max_weight:
            raise WeightRangeError(
                f"{weight.id}: min_weight {weight.min_weight} > "
                f"max_weight {weight.max_weight}"
            )
        if not weight.min_weight <= weight.base_weight <= weight.max_weight:
            raise WeightRangeError(
                f"{weight.id}: base_weight {weight.base_weight} outside "
                f"[{weight.min_weight}, {weight.max_weight}]"
            )
        if not weight.is_adjustable and not (
            weight.min_weight == weight.base_weight == weight.max_weight
        ):
            raise WeightRangeError(
                f"{weight.id}: non-adjustable constraints need a degenerate range"
            )
        stored = replace(weight, current_weight=weight.base_weight)
        if weight.id in self._weights:
            logger.info(f"Replacing weight definition for {weight.id}")
        self._weights[weight.id] = stored

    def __contains__(self, constraint_id: str) -> bool:
        return constraint_id in self._weights

    def __len__(self) -> int:
        return len(self._weights)

    def ids(self) -> List[str]:
        return list(self._weights)

    def get(self, constraint_id: str) -> Optional[ConstraintWeight]:
        """Copy of a single constraint weight, or None."""
        weight = self._weights.get(constraint_id)
        return replace(weight) if weight else None

    def snapshot(self) -> Dict[str, ConstraintWeight]:
        """Copy-on-read view, safe to hand out while the adjuster runs."""
        return {cid: replace(w) for cid, w in self._weights.items()}

    def current_weights(self) -> Dict[str, float]:
        return {cid: w.current_weight for cid, w in self._weights.items()}

    def reset_adjustable(self) -> None:
        for weight in self._weights.values():
            if weight.is_adjustable:
                weight.current_weight = weight.base_weight

    def set_current_weight(self, constraint_id: str, value: float) -> None:
        """Store an already-clamped weight; out-of-range values are fatal."""
        weight = self._weights[constraint_id]
        if not weight.min_weight <= value <= weight.max_weight:
            raise WeightInvariantViolation(
                f"{constraint_id}: weight {value} outside "
                f"[{weight.min_weight}, {weight.max_weight}]"
            )
        if not weight.is_adjustable and value != weight.base_weight:
            raise WeightInvariantViolation(
                f"{constraint_id}: non-adjustable weight cannot change"
            )
        weight.current_weight = value

    def update_base_weight(self, constraint_id: str, new_base_weight: float) -> bool:
        weight = self._weights.get(constraint_id)
        if weight is None or not weight.is_adjustable:
            return False
        if not weight.min_weight <= new_base_weight <= weight.max_weight:
            return False
        weight.base_weight = new_base_weight
        weight.current_weight = new_base_weight
        return True

    def check_invariants(self) -> None:
        for weight in self._weights.values():
            if not weight.min_weight <= weight.current_weight <= weight.max_weight:
                raise WeightInvariantViolation(
                    f"{weight.id}: weight {weight.current_weight} outside "
                    f"[{weight.min_weight}, {weight.max_weight}]"
                )
            if not weight.is_adjustable and weight.current_weight != weight.base_weight:
                raise WeightInvariantViolation(
                    f"{weight.id}: non-adjustable weight drifted from base"
                )

    def replace_all(self, weights: List[ConstraintWeight]) -> None:
        """Swap in a complete set of weights (used by configuration import)."""
        previous = self._weights
        self._weights = {}
        try:
            for weight in weights:
                self.register(weight)
        except WeightRangeError:
            self._weights = previous
            raise
