# backend/app/__init__.py

"""FastAPI application exposing the pre-flight engine."""

from .config import Settings, get_settings
from .core import AppError, InputValidationError

__all__ = ["Settings", "get_settings", "AppError", "InputValidationError"]
