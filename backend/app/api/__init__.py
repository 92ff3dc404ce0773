# backend/app/api/__init__.py
from .deps import get_preflight_service, get_weight_adjuster

__all__ = ["get_preflight_service", "get_weight_adjuster"]
