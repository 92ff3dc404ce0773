# backend/app/api/v1/routes/__init__.py
from fastapi import APIRouter

from .moves import router as moves_router
from .validation import router as validation_router
from .weights import router as weights_router

# Create a main router that includes all sub-routers
router = APIRouter()

router.include_router(validation_router, prefix="/validate", tags=["Validation"])
router.include_router(weights_router, prefix="/weights", tags=["Constraint Weights"])
router.include_router(moves_router, prefix="/moves", tags=["Time Spreading"])
