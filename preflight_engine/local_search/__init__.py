# preflight_engine/local_search/__init__.py

"""
Time-spreading local search: move generation, evaluation and repair
"""

from .moves import MoveEvaluationResult, MoveKind, TimeSpreadingMove
from .move_generator import MoveGenerator
from .move_evaluator import MoveEvaluator
from .repair import LocalSearchRepair, RepairResult

__all__ = [
    "MoveEvaluationResult",
    "MoveKind",
    "TimeSpreadingMove",
    "MoveGenerator",
    "MoveEvaluator",
    "LocalSearchRepair",
    "RepairResult",
]
