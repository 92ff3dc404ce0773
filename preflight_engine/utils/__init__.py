# preflight_engine/utils/__init__.py

from .logging import LogEntry, PreflightLogger, get_preflight_logger

__all__ = ["LogEntry", "PreflightLogger", "get_preflight_logger"]
