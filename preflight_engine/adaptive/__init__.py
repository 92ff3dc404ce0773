# preflight_engine/adaptive/__init__.py

"""
Adaptive constraint weighting driven by observed conflict patterns
"""

from .conditions import ComparisonOperator, Condition, ConditionParseError, Counter
from .weight_adjuster import (
    AdjusterState,
    AdjustmentType,
    SystemState,
    WeightAdjuster,
    WeightAdjustmentHistory,
    WeightAdjustmentRule,
    default_rules,
)

__all__ = [
    "ComparisonOperator",
    "Condition",
    "ConditionParseError",
    "Counter",
    "AdjusterState",
    "AdjustmentType",
    "SystemState",
    "WeightAdjuster",
    "WeightAdjustmentHistory",
    "WeightAdjustmentRule",
    "default_rules",
]
