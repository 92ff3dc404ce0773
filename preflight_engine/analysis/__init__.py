# preflight_engine/analysis/__init__.py

"""
Analysis module: conflict scanning, risk aggregation and time distribution
"""

from .conflict_scanner import ConflictScanner
from .risk_aggregator import RiskAggregator
from .time_distribution import TimeDistributionAnalyzer

__all__ = ["ConflictScanner", "RiskAggregator", "TimeDistributionAnalyzer"]
