# backend/app/api/deps.py
import logging
from functools import lru_cache

from fastapi import Depends

from preflight_engine.adaptive.weight_adjuster import WeightAdjuster

from ..config import Settings, get_settings
from ..services.preflight_service import PreflightService

logger = logging.getLogger(__name__)


@lru_cache()
def get_weight_adjuster() -> WeightAdjuster:
    """Process-scoped adjuster; every request shares one weight registry."""
    logger.info("Creating process-wide weight adjuster")
    return WeightAdjuster()


def get_preflight_service(
    settings: Settings = Depends(get_settings),
    adjuster: WeightAdjuster = Depends(get_weight_adjuster),
) -> PreflightService:
    """Dependency to get a request-scoped engine service."""
    return PreflightService(settings, adjuster)
