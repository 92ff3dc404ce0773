# backend/app/services/__init__.py
"""
Services package for the application.

Business logic that runs the pre-flight engine on behalf of the API endpoints.
"""

from .preflight_service import PreflightService

__all__ = ["PreflightService"]
