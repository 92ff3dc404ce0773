# preflight_engine/config.py

"""
Configuration module for the pre-flight engine.
Holds the tunable constants of the conflict scanner, the risk aggregator,
the weight adjuster and the time-spreading local search.
"""

from typing import Dict, FrozenSet, Tuple
from enum import Enum
from dataclasses import dataclass, field
from datetime import date
import logging


class PreflightStage(Enum):
    """Stages of a pre-flight pass"""

    SCAN = "scan"
    AGGREGATE = "aggregate"
    ADJUST_WEIGHTS = "adjust_weights"
    LOCAL_SEARCH = "local_search"


@dataclass
class ScannerConfig:
    """Configuration for the multi-dimensional conflict scan"""

    # Exam blocks are assumed to last this long; the rest gap separates runs.
    exam_duration_hours: float = 2.0
    min_rest_gap_hours: float = 1.0
    max_continuous_hours: float = 8.0
    severe_continuous_hours: float = 12.0

    # Workload caps by seniority
    senior_workload_cap: int = 10
    default_workload_cap: int = 6
    senior_title_keywords: Tuple[str, ...] = (
        "deputy director",
        "director",
        "professor",
        "chief",
        "主任",
        "副主任",
        "教授",
    )
    workload_severe_ratio: float = 1.5

    # Named slots accepted in Assignment.time_slot
    named_slot_starts: Dict[str, str] = field(
        default_factory=lambda: {
            "morning": "08:00",
            "afternoon": "14:00",
            "evening": "19:00",
        }
    )

    # Public holidays treated like weekends by the legal-rest detector
    holidays: FrozenSet[date] = frozenset()


@dataclass
class RiskConfig:
    """Configuration for risk scoring and resolution estimates"""

    severity_weights: Dict[str, float] = field(
        default_factory=lambda: {"critical": 4, "high": 3, "medium": 2, "low": 1}
    )
    resolution_minutes: Dict[str, int] = field(
        default_factory=lambda: {"critical": 30, "high": 20, "medium": 10, "low": 5}
    )
    risk_multiplier: float = 5.0
    max_risk_score: float = 100.0
    many_conflicts_threshold: int = 10


@dataclass
class TimeConcentrationConfig:
    """Configuration for the time-concentration (spreading) constraint"""

    enabled: bool = True
    weight: float = 60.0
    max_daily_exams: int = 8
    ideal_daily_exams: int = 4
    penalty_multiplier: float = 2.0

    ideal_daily_variance: float = 2.0
    max_penalty_score: float = 1000.0
    concentration_threshold: float = 0.7  # fraction of 100
    busy_day_ratio: float = 1.2
    peak_day_ratio: float = 1.5


@dataclass
class LocalSearchConfig:
    """Configuration for the time-spreading neighborhood search"""

    max_busy_days: int = 3
    assignments_per_busy_day: int = 3
    relocation_targets: int = 2
    redistribute_fraction: float = 0.3
    min_swap_count_difference: int = 2

    # Repair loop budget
    max_moves: int = 50
    min_improvement: float = 1e-9


@dataclass
class WeightAdjusterConfig:
    """Configuration for dynamic weight adjustment"""

    history_limit: int = 1000
    history_compact_to: int = 500


@dataclass
class PreflightEngineConfig:
    """Main configuration for the pre-flight engine"""

    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    time_concentration: TimeConcentrationConfig = field(
        default_factory=TimeConcentrationConfig
    )
    local_search: LocalSearchConfig = field(default_factory=LocalSearchConfig)
    weights: WeightAdjusterConfig = field(default_factory=WeightAdjusterConfig)

    # Global settings
    enable_logging: bool = True
    log_level: str = "INFO"


# Global configuration instance
config = PreflightEngineConfig()


def get_logger(name: str) -> logging.Logger:
    """Get configured logger for the pre-flight engine"""
    logger = logging.getLogger(f"preflight_engine.{name}")
    if config.enable_logging and not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, config.log_level))
    return logger
