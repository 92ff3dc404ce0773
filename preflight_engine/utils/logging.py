# preflight_engine/utils/logging.py

"""
Structured logging for pre-flight passes: stage timing, per-operation
durations and counters, kept in memory so a service can report them.
"""

import json
import logging
import statistics
import threading
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..config import PreflightStage


@dataclass
class LogEntry:
    """Structured log entry of a pre-flight operation"""

    timestamp: datetime
    level: int
    stage: Optional[PreflightStage]
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    performance_metrics: Dict[str, Union[int, float]] = field(default_factory=dict)
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": logging.getLevelName(self.level),
            "stage": self.stage.value if self.stage else None,
            "message": self.message,
            "context": self.context,
            "performance_metrics": self.performance_metrics,
            "correlation_id": self.correlation_id,
        }


class PreflightLogger:
    """
    Thin wrapper over a stdlib logger that also records entries, stage
    durations and counters. Safe to share between threads.
    """

    def __init__(
        self,
        name: str = "preflight_engine",
        correlation_id: Optional[str] = None,
        max_log_entries: int = 5000,
    ):
        self.name = name
        self.correlation_id = correlation_id
        self._logger = logging.getLogger(name)

        self._stage_started: Dict[PreflightStage, float] = {}
        self._operation_timers: Dict[str, List[float]] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)
        self._entries: deque = deque(maxlen=max_log_entries)

        self._lock = threading.Lock()

    def _log(
        self,
        level: int,
        message: str,
        stage: Optional[PreflightStage] = None,
        context: Optional[Dict[str, Any]] = None,
        performance_metrics: Optional[Dict[str, Union[int, float]]] = None,
    ):
        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            stage=stage,
            message=message,
            context=context or {},
            performance_metrics=performance_metrics or {},
            correlation_id=self.correlation_id,
        )
        with self._lock:
            self._entries.append(entry)

        if self._logger.isEnabledFor(level):
            extra = {**entry.context, **entry.performance_metrics}
            suffix = f" | {json.dumps(extra, default=str)}" if extra else ""
            prefix = f"[{stage.value}] " if stage else ""
            self._logger.log(level, f"{prefix}{message}{suffix}")

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    @contextmanager
    def stage_context(
        self, stage: PreflightStage, context: Optional[Dict[str, Any]] = None
    ):
        """Time a pre-flight stage and log its start and end"""
        started = time.perf_counter()
        with self._lock:
            self._stage_started[stage] = started
        self.debug(f"Starting {stage.value}", stage=stage, context=context)
        try:
            yield
        finally:
            duration = time.perf_counter() - started
            with self._lock:
                self._stage_started.pop(stage, None)
                self._operation_timers[stage.value].append(duration)
            self.info(
                f"Completed {stage.value}",
                stage=stage,
                context=context,
                performance_metrics={"duration_seconds": round(duration, 6)},
            )

    @contextmanager
    def operation_timer(self, operation_name: str):
        started = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - started
            with self._lock:
                self._operation_timers[operation_name].append(duration)

    def increment_counter(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_operation_summary(self) -> Dict[str, Any]:
        """Aggregate durations per timed operation or stage"""
        summary = {}
        with self._lock:
            timers = {k: list(v) for k, v in self._operation_timers.items()}
        for operation, durations in timers.items():
            if not durations:
                continue
            summary[operation] = {
                "total_time": sum(durations),
                "average_time": statistics.mean(durations),
                "max_time": max(durations),
                "count": len(durations),
            }
        return summary

    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [entry.to_dict() for entry in self._entries]

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._operation_timers.clear()
            self._counters.clear()
            self._stage_started.clear()


_default_logger: Optional[PreflightLogger] = None


def get_preflight_logger(
    name: str = "preflight_engine", correlation_id: Optional[str] = None
) -> PreflightLogger:
    """Get or create the shared pre-flight logger"""
    global _default_logger

    if _default_logger is None or _default_logger.name != name:
        _default_logger = PreflightLogger(name=name, correlation_id=correlation_id)

    return _default_logger
