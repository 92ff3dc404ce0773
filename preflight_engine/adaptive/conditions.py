# preflight_engine/adaptive/conditions.py

"""
Rule conditions over SystemState counters.

A Condition is a (counter, operator, threshold) triple built when a rule is
registered. ``Condition.parse`` accepts the textual form
``"<counter> <op> <integer>"`` used by stored rule sets.
"""

import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict

if TYPE_CHECKING:
    from .weight_adjuster import SystemState


class ConditionParseError(ValueError):
    """Raised when a condition string does not follow the rule grammar."""


class Counter(Enum):
    """Named integers of a SystemState that rule conditions can test."""

    DUTY_SHIFT_CONFLICTS = "duty_shift_conflicts"
    DEPARTMENT_CONFLICTS = "department_conflicts"
    TIME_OVERLAP_CONFLICTS = "time_overlap_conflicts"
    WORKLOAD_CONFLICTS = "workload_conflicts"
    AVAILABILITY_CONFLICTS = "availability_conflicts"
    LEGAL_REST_CONFLICTS = "legal_rest_conflicts"
    CONTINUOUS_WORK_CONFLICTS = "continuous_work_conflicts"
    CRITICAL_CONFLICTS = "critical_conflicts"
    HIGH_CONFLICTS = "high_conflicts"
    MEDIUM_CONFLICTS = "medium_conflicts"
    LOW_CONFLICTS = "low_conflicts"
    TOTAL_CONFLICTS = "total_conflicts"
    OVERALL_RISK_SCORE = "overall_risk_score"

    def read(self, state: "SystemState") -> float:
        return state.counter_value(self)


class ComparisonOperator(Enum):
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    EQ = "="

    @classmethod
    def from_symbol(cls, symbol: str) -> "ComparisonOperator":
        if symbol == "==":
            return cls.EQ
        return cls(symbol)


_OPERATOR_FUNCS: Dict[ComparisonOperator, Callable[[float, float], bool]] = {
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LE: operator.le,
    ComparisonOperator.EQ: operator.eq,
}

_CONDITION_PATTERN = re.compile(r"^\s*([a-z_]+)\s*(>=|<=|==|>|<|=)\s*(-?\d+)\s*$")


@dataclass(frozen=True)
class Condition:
    counter: Counter
    op: ComparisonOperator
    threshold: int

    def evaluate(self, state: "SystemState") -> bool:
        return _OPERATOR_FUNCS[self.op](self.counter.read(state), self.threshold)

    @classmethod
    def parse(cls, text: str) -> "Condition":
        match = _CONDITION_PATTERN.match(text or "")
        if not match:
            raise ConditionParseError(f"Malformed condition: {text!r}")
        name, symbol, threshold = match.groups()
        try:
            counter = Counter(name)
        except ValueError:
            raise ConditionParseError(f"Unknown counter in condition: {name!r}")
        return cls(counter, ComparisonOperator.from_symbol(symbol), int(threshold))

    def __str__(self) -> str:
        return f"{self.counter.value} {self.op.value} {self.threshold}"
