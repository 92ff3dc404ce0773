# backend/app/main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from preflight_engine import __version__ as engine_version

from .api.v1.api import api_router
from .config import get_settings, validate_settings
from .core.exceptions import AppError
from .logging_config import build_logging_config

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info(f"Starting {settings.APP_NAME} (engine v{engine_version})...")
    for issue in validate_settings(settings):
        logger.warning(f"Configuration issue: {issue}")

    yield

    logger.info("Shutting down the application...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Pre-flight constraint validation and time-spreading repair",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Translate structured application errors into their JSON body."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch any unhandled exceptions and log them with a full traceback.
    Returns a generic 500 error to the client to avoid leaking details.
    """
    logger.error(
        f"Unhandled exception for request {request.method} {request.url}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred."},
    )


app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint providing basic API information."""
    return {
        "message": f"Welcome to the {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "engine_version": engine_version,
        "status": "active",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint; the engine is in-process and stateless."""
    return {"status": "healthy", "service": "backend"}


if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_config=build_logging_config(settings.LOG_LEVEL),
    )
