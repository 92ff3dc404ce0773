# preflight_engine/adaptive/weight_adjuster.py

"""
Dynamic constraint weight adjustment.

Each cycle resets the adjustable weights to base, applies every enabled rule
whose condition holds for the given SystemState, and then makes sure every
critical constraint outweighs every non-critical one. Cycles are serialized
by a lock; readers get copies from the registry.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import WeightAdjusterConfig
from ..core.constraint_registry import WeightRegistry
from ..core.constraint_types import (
    ConflictSeverity,
    ConflictType,
    ConstraintCategory,
    ConstraintType,
    ConstraintWeight,
)
from ..core.metrics import PreValidationResult, empty_severity_counts
from .conditions import Condition, ConditionParseError, Counter

logger = logging.getLogger(__name__)

CRITICAL_DOMINANCE_REASON = "critical dominance"
RESET_REASON = "reset to base"

_SEVERITY_COUNTERS = {
    Counter.CRITICAL_CONFLICTS: ConflictSeverity.CRITICAL,
    Counter.HIGH_CONFLICTS: ConflictSeverity.HIGH,
    Counter.MEDIUM_CONFLICTS: ConflictSeverity.MEDIUM,
    Counter.LOW_CONFLICTS: ConflictSeverity.LOW,
}
_TYPE_COUNTERS = {Counter(f"{t.value}_conflicts"): t for t in ConflictType}


class AdjusterState(Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    APPLYING = "applying"


class AdjustmentType(Enum):
    MULTIPLY = "multiply"
    ADD = "add"
    SET = "set"


@dataclass(frozen=True)
class WeightAdjustmentRule:
    """
    A condition over SystemState counters and the adjustment to apply to the
    target constraints when it holds.

    ``condition`` is None only for rules built from text that failed to
    parse; such rules never fire.
    """

    id: str
    name: str
    condition: Optional[Condition]
    target_constraints: Tuple[str, ...]
    adjustment_type: AdjustmentType
    adjustment_value: float
    priority: int
    enabled: bool = True
    expression: Optional[str] = None

    @classmethod
    def from_expression(
        cls,
        id: str,
        name: str,
        expression: str,
        target_constraints: Sequence[str],
        adjustment_type: AdjustmentType,
        adjustment_value: float,
        priority: int,
        enabled: bool = True,
    ) -> "WeightAdjustmentRule":
        try:
            condition: Optional[Condition] = Condition.parse(expression)
        except ConditionParseError as e:
            logger.warning(f"Rule {id} registered with an unusable condition: {e}")
            condition = None
        return cls(
            id=id,
            name=name,
            condition=condition,
            target_constraints=tuple(target_constraints),
            adjustment_type=adjustment_type,
            adjustment_value=adjustment_value,
            priority=priority,
            enabled=enabled,
            expression=expression,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeightAdjustmentRule":
        return cls.from_expression(
            id=data["id"],
            name=data.get("name", data["id"]),
            expression=data["condition"],
            target_constraints=data["target_constraints"],
            adjustment_type=AdjustmentType(data["adjustment_type"]),
            adjustment_value=float(data["adjustment_value"]),
            priority=int(data["priority"]),
            enabled=bool(data.get("enabled", True)),
        )

    def evaluate(self, state: "SystemState") -> bool:
        if self.condition is None:
            logger.warning(
                f"Skipping rule {self.id}: condition {self.expression!r} is unusable"
            )
            return False
        return self.condition.evaluate(state)

    def apply(self, weight: float) -> float:
        """Unclamped result of applying this rule to ``weight``."""
        if self.adjustment_type == AdjustmentType.MULTIPLY:
            return weight * self.adjustment_value
        if self.adjustment_type == AdjustmentType.ADD:
            return weight + self.adjustment_value
        return self.adjustment_value

    def to_dict(self) -> Dict[str, Any]:
        condition = self.expression
        if self.condition is not None:
            condition = str(self.condition)
        return {
            "id": self.id,
            "name": self.name,
            "condition": condition,
            "target_constraints": list(self.target_constraints),
            "adjustment_type": self.adjustment_type.value,
            "adjustment_value": self.adjustment_value,
            "priority": self.priority,
            "enabled": self.enabled,
        }


@dataclass
class SystemState:
    """Snapshot of the conflict picture that drives one adjustment cycle."""

    conflict_count: int = 0
    conflicts_by_severity: Dict[ConflictSeverity, int] = field(
        default_factory=empty_severity_counts
    )
    conflicts_by_type: Dict[ConflictType, int] = field(default_factory=dict)
    overall_risk_score: float = 0.0
    scheduling_success: bool = True
    last_optimization_time: Optional[datetime] = None

    @classmethod
    def from_validation_result(
        cls,
        result: PreValidationResult,
        scheduling_success: Optional[bool] = None,
        last_optimization_time: Optional[datetime] = None,
    ) -> "SystemState":
        by_type: Dict[ConflictType, int] = {t: 0 for t in ConflictType}
        for conflict in result.conflicts:
            by_type[conflict.conflict_type] += 1
        return cls(
            conflict_count=result.total_conflicts,
            conflicts_by_severity=dict(result.conflicts_by_severity),
            conflicts_by_type=by_type,
            overall_risk_score=result.overall_risk_score,
            scheduling_success=(
                result.is_valid if scheduling_success is None else scheduling_success
            ),
            last_optimization_time=last_optimization_time or datetime.now(),
        )

    def counter_value(self, counter: Counter) -> float:
        if counter == Counter.TOTAL_CONFLICTS:
            return self.conflict_count
        if counter == Counter.OVERALL_RISK_SCORE:
            return self.overall_risk_score
        if counter in _SEVERITY_COUNTERS:
            return self.conflicts_by_severity.get(_SEVERITY_COUNTERS[counter], 0)
        return self.conflicts_by_type.get(_TYPE_COUNTERS[counter], 0)


@dataclass
class WeightAdjustmentHistory:
    timestamp: datetime
    constraint_id: str
    old_weight: float
    new_weight: float
    reason: str
    triggered_by: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "constraint_id": self.constraint_id,
            "old_weight": self.old_weight,
            "new_weight": self.new_weight,
            "reason": self.reason,
            "triggered_by": self.triggered_by,
        }


def default_rules() -> List[WeightAdjustmentRule]:
    multiply, add, set_ = (
        AdjustmentType.MULTIPLY,
        AdjustmentType.ADD,
        AdjustmentType.SET,
    )
    rule = WeightAdjustmentRule.from_expression
    # fmt: off
    return [
        rule("rule_duty_conflict_boost", "Duty-shift conflict boost",
             "duty_shift_conflicts > 3", ["HC4"], multiply, 1.5, 1),
        rule("rule_department_conflict_boost", "Department conflict boost",
             "department_conflicts > 2", ["HC3", "HC7"], multiply, 1.3, 2),
        rule("rule_workload_balance_boost", "Workload balance boost",
             "workload_conflicts > 1", ["SC10"], multiply, 2.0, 3),
        rule("rule_continuous_work_boost", "Continuous work boost",
             "continuous_work_conflicts > 0", ["SC10"], add, 50, 3),
        rule("rule_critical_constraint_emergency_boost",
             "Critical constraint emergency boost", "critical_conflicts > 0",
             ["HC1", "HC2", "HC3", "HC4"], set_, 10000, 1),
        rule("rule_high_risk_relax_optimization", "Relax optimization under risk",
             "overall_risk_score >= 70", ["SC11"], multiply, 0.5, 4),
    ]
    # fmt: on


class WeightAdjuster:
    """Rule-driven state machine over a WeightRegistry."""

    def __init__(
        self,
        registry: Optional[WeightRegistry] = None,
        rules: Optional[Sequence[WeightAdjustmentRule]] = None,
        config: Optional[WeightAdjusterConfig] = None,
    ):
        self.registry = registry if registry is not None else WeightRegistry()
        self.config = config or WeightAdjusterConfig()
        self._rules: List[WeightAdjustmentRule] = list(
            default_rules() if rules is None else rules
        )
        self._history: List[WeightAdjustmentHistory] = []
        self._state = AdjusterState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> AdjusterState:
        return self._state

    @property
    def rules(self) -> Tuple[WeightAdjustmentRule, ...]:
        return tuple(self._rules)

    def adjust_weights(self, system_state: SystemState) -> Dict[str, float]:
        """
        Run one adjustment cycle and return the constraints whose weight now
        differs from base. Calling it twice with the same state gives the same
        result.
        """
        with self._lock:
            previous = self.registry.current_weights()
            try:
                self._state = AdjusterState.EVALUATING
                self.registry.reset_adjustable()
                fired = [
                    rule
                    for rule in sorted(self._rules, key=lambda r: r.priority)
                    if rule.enabled and rule.evaluate(system_state)
                ]

                self._state = AdjusterState.APPLYING
                reasons: Dict[str, List[str]] = defaultdict(list)
                for rule in fired:
                    self._apply_rule(rule, reasons)
                self._enforce_critical_dominance(reasons)
                self.registry.check_invariants()

                self._record_history(previous, reasons)
            finally:
                self._state = AdjusterState.IDLE

            if fired:
                logger.info(
                    f"Weight adjustment applied rules: {', '.join(r.id for r in fired)}"
                )
            return {
                cid: w.current_weight
                for cid, w in self.registry.snapshot().items()
                if w.current_weight != w.base_weight
            }

    def _apply_rule(
        self, rule: WeightAdjustmentRule, reasons: Dict[str, List[str]]
    ) -> None:
        for constraint_id in rule.target_constraints:
            weight = self.registry.get(constraint_id)
            if weight is None:
                logger.warning(
                    f"Rule {rule.id} targets unknown constraint {constraint_id}"
                )
                continue
            if not weight.is_adjustable:
                logger.debug(f"Rule {rule.id}: {constraint_id} is not adjustable")
                continue
            new_weight = weight.clamp(rule.apply(weight.current_weight))
            self.registry.set_current_weight(constraint_id, new_weight)
            reasons[constraint_id].append(rule.id)

    def _enforce_critical_dominance(self, reasons: Dict[str, List[str]]) -> None:
        weights = self.registry.snapshot()
        non_critical = [w.current_weight for w in weights.values() if not w.is_critical]
        if not non_critical:
            return
        ceiling = max(non_critical)

        for weight in weights.values():
            if not weight.is_critical or weight.current_weight > ceiling:
                continue
            raised = min(weight.max_weight, 2 * ceiling)
            if not weight.is_adjustable or raised <= ceiling:
                logger.warning(
                    f"Critical constraint {weight.id} ({weight.current_weight}) "
                    f"cannot dominate non-critical maximum {ceiling}"
                )
                continue
            self.registry.set_current_weight(weight.id, raised)
            reasons[weight.id].append(CRITICAL_DOMINANCE_REASON)

    def _record_history(
        self, previous: Dict[str, float], reasons: Dict[str, List[str]]
    ) -> None:
        timestamp = datetime.now()
        for constraint_id, new_weight in self.registry.current_weights().items():
            old_weight = previous.get(constraint_id)
            if old_weight == new_weight:
                continue
            self._history.append(
                WeightAdjustmentHistory(
                    timestamp=timestamp,
                    constraint_id=constraint_id,
                    old_weight=old_weight,
                    new_weight=new_weight,
                    reason=", ".join(reasons.get(constraint_id, [])) or RESET_REASON,
                    triggered_by="system",
                )
            )

        if len(self._history) > self.config.history_limit:
            self._history = self._history[-self.config.history_compact_to :]

    # ------------------------------------------------------------------
    # Rule and configuration management
    # ------------------------------------------------------------------

    def add_rule(self, rule: WeightAdjustmentRule) -> None:
        with self._lock:
            self._rules = [r for r in self._rules if r.id != rule.id]
            self._rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        with self._lock:
            remaining = [r for r in self._rules if r.id != rule_id]
            removed = len(remaining) != len(self._rules)
            self._rules = remaining
            return removed

    def update_base_weight(self, constraint_id: str, new_base_weight: float) -> bool:
        with self._lock:
            return self.registry.update_base_weight(constraint_id, new_base_weight)

    def get_weights(self) -> Dict[str, ConstraintWeight]:
        return self.registry.snapshot()

    def get_history(self, limit: int = 50) -> List[WeightAdjustmentHistory]:
        if limit <= 0:
            return []
        return list(self._history[-limit:])

    def get_recommendations(self, system_state: SystemState) -> List[str]:
        recommendations = []
        if system_state.conflicts_by_severity.get(ConflictSeverity.CRITICAL, 0) > 0:
            recommendations.append(
                "Critical conflicts detected; raise the related hard constraint weights"
            )
        if system_state.conflicts_by_type.get(ConflictType.DUTY_SHIFT, 0) > 2:
            recommendations.append(
                "Frequent duty-shift conflicts; raise HC4 to its highest level"
            )
        if system_state.overall_risk_score > 70:
            recommendations.append(
                "High overall risk; lower optimization soft constraints "
                "and focus on core conflicts"
            )
        if not system_state.scheduling_success:
            recommendations.append(
                "Scheduling failed; temporarily disable some soft constraints"
            )
        return recommendations

    def export_configuration(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "constraints": [w.to_dict() for w in self.registry.snapshot().values()],
                "rules": [r.to_dict() for r in self._rules],
                "history": [h.to_dict() for h in self._history[-100:]],
                "export_time": datetime.now().isoformat(),
            }

    def import_configuration(self, payload: Dict[str, Any]) -> bool:
        """Replace constraints and/or rules; the adjuster is unchanged on failure."""
        try:
            weights = None
            if payload.get("constraints"):
                weights = [_weight_from_dict(d) for d in payload["constraints"]]
            rules = None
            if payload.get("rules") is not None:
                rules = [WeightAdjustmentRule.from_dict(d) for d in payload["rules"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to import weight configuration: {e}")
            return False

        with self._lock:
            if weights is not None:
                try:
                    self.registry.replace_all(weights)
                except ValueError as e:
                    logger.error(f"Failed to import weight configuration: {e}")
                    return False
            if rules is not None:
                self._rules = rules
        logger.info("Weight configuration imported")
        return True


def _weight_from_dict(data: Dict[str, Any]) -> ConstraintWeight:
    base = float(data["base_weight"])
    return ConstraintWeight(
        id=data["id"],
        name=data.get("name", data["id"]),
        constraint_type=ConstraintType(data["constraint_type"]),
        base_weight=base,
        current_weight=float(data.get("current_weight", base)),
        priority=int(data["priority"]),
        category=ConstraintCategory(data["category"]),
        is_adjustable=bool(data["is_adjustable"]),
        min_weight=float(data["min_weight"]),
        max_weight=float(data["max_weight"]),
    )
