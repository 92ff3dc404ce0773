# backend/app/core/__init__.py

from .exceptions import (
    AppError,
    EngineInvariantError,
    InputValidationError,
    WeightConfigurationError,
)

__all__ = [
    "AppError",
    "EngineInvariantError",
    "InputValidationError",
    "WeightConfigurationError",
]
