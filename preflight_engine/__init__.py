# preflight_engine/__init__.py

"""
Pre-flight Engine Package Initialization

Advisory validation of candidate exam/examiner schedules: multi-dimensional
conflict detection, risk scoring, dynamic constraint re-weighting and a
time-spreading local search that proposes corrective moves.
"""

from .config import (
    PreflightEngineConfig,
    PreflightStage,
    config,
    get_logger,
)

from .core import (
    Assignment,
    Student,
    Teacher,
    ConflictDetectionResult,
    ConstraintId,
    PreValidationResult,
    WeightRegistry,
)
from .analysis import ConflictScanner, RiskAggregator, TimeDistributionAnalyzer
from .adaptive import SystemState, WeightAdjuster
from .local_search import LocalSearchRepair, MoveEvaluator, MoveGenerator

__version__ = "1.0.0"

# Package-level exports
__all__ = [
    # Configuration
    "PreflightEngineConfig",
    "PreflightStage",
    "config",
    "get_logger",
    # Core components
    "Assignment",
    "Student",
    "Teacher",
    "ConflictDetectionResult",
    "ConstraintId",
    "PreValidationResult",
    "WeightRegistry",
    # Analysis
    "ConflictScanner",
    "RiskAggregator",
    "TimeDistributionAnalyzer",
    # Adaptive weighting
    "SystemState",
    "WeightAdjuster",
    # Local search
    "LocalSearchRepair",
    "MoveEvaluator",
    "MoveGenerator",
]

# Initialize package-level logger
logger = get_logger("main")
logger.info(f"Pre-flight Engine v{__version__} initialized")
