# backend/app/schemas/__init__.py
"""Expose schema modules for convenient imports."""

from . import preflight

__all__ = ["preflight"]
