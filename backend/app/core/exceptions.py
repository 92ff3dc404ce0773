# app/core/exceptions.py
"""Application-level exceptions used across services.

This module provides structured exceptions that carry metadata useful for
service-level error handling, logging, and HTTP translation.

- Each exception is serializable via ``to_dict`` for API responses and logs.
- Exceptions include an explicit ``code`` and ``status_code`` for consistent
  error handling across the application.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base application exception with structured metadata.

    Attributes
    ----------
    message
        Human readable message.
    code
        Machine friendly error code (snake_case).
    status_code
        Suggested HTTP status code for API responses.
    details
        Arbitrary extra data useful for debugging or UX.
    timestamp
        UTC ISO timestamp when the exception was created.
    cause
        Optional underlying exception instance.
    context
        Optional lightweight context dict (ids, stage names, counts).
    """

    code: str = "app_error"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An application error occurred",
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}({self.code}): {self.message}"
        if self.context:
            base += f" | context={self.context}"
        if self.details is not None:
            base += f" | details={self.details}"
        if self.cause is not None:
            base += f" | cause={repr(self.cause)}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation suitable for API responses."""
        return {
            "error": {
                "type": self.__class__.__name__,
                "code": self.code,
                "message": self.message,
                "status_code": self.status_code,
                "details": self.details,
                "context": self.context,
                "timestamp": self.timestamp,
            }
        }

    def with_context(self, **ctx: Any) -> "AppError":
        """Return self after extending the context dict. Useful for chaining.

        Example:
        raise err.with_context(stage="scan")
        """
        self.context.update({k: v for k, v in ctx.items() if v is not None})
        return self

    @classmethod
    def from_exception(
        cls, exc: BaseException, message: Optional[str] = None
    ) -> "AppError":
        """Wrap a generic exception into an AppError preserving the cause."""
        return cls(message or str(exc), cause=exc)


class InputValidationError(AppError):
    """The request is well-typed but inconsistent (duplicate ids and the like)."""

    code = "input_validation_error"
    status_code = 422

    def __init__(
        self,
        message: str = "Invalid pre-flight input",
        *,
        errors: Optional[List[str]] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.errors = list(errors or [])
        if details is None and self.errors:
            details = {"errors": self.errors}
        super().__init__(message, details=details, cause=cause, context=context)


class WeightConfigurationError(AppError):
    """An imported weight configuration was rejected."""

    code = "weight_configuration_error"
    status_code = 422


class EngineInvariantError(AppError):
    """The engine reached a state its invariants forbid."""

    code = "engine_invariant_violation"
    status_code = 500


__all__ = [
    "AppError",
    "InputValidationError",
    "WeightConfigurationError",
    "EngineInvariantError",
]
