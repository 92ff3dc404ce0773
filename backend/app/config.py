# backend/app/config.py
"""
Configuration management for the Pre-flight Validation Service.
Uses Pydantic for settings validation and environment variable management.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Pre-flight Validation Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", alias="ENV")

    # CORS settings
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:5173",  # Vite frontend
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
        alias="CORS_ORIGINS",
    )

    # Time-spreading settings
    IDEAL_DAILY_EXAMS: int = Field(default=4, alias="IDEAL_DAILY_EXAMS", ge=1)
    MAX_DAILY_EXAMS: int = Field(default=8, alias="MAX_DAILY_EXAMS", ge=1)
    MAX_REPAIR_MOVES: int = Field(default=50, alias="MAX_REPAIR_MOVES", ge=0)

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_comma_separated(cls, v: Any) -> Any:
        """Parse comma-separated strings from env vars into lists."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return (self.ENVIRONMENT or "").lower() == "production"


class DevelopmentSettings(Settings):
    """Development environment specific settings."""

    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


class ProductionSettings(Settings):
    """Production environment specific settings."""

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


class TestingSettings(Settings):
    """Testing environment specific settings."""

    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


@lru_cache()
def get_settings() -> Settings:
    """
    Load and return the appropriate settings based on the ENVIRONMENT variable.
    Caches the result to prevent reading the .env file on every call.
    """
    environment = os.getenv("ENVIRONMENT", "development").lower()

    if environment == "production":
        return ProductionSettings()
    if environment in ("test", "testing"):
        return TestingSettings()
    return DevelopmentSettings()


def validate_settings(settings: Settings) -> List[str]:
    """Validate settings and return list of issues."""
    issues: List[str] = []

    if settings.IDEAL_DAILY_EXAMS > settings.MAX_DAILY_EXAMS:
        issues.append("IDEAL_DAILY_EXAMS must not exceed MAX_DAILY_EXAMS")

    if settings.is_production and "*" in settings.CORS_ORIGINS:
        issues.append("CORS_ORIGINS should not allow every origin in production")

    return issues


__all__ = [
    "Settings",
    "get_settings",
    "validate_settings",
    "DevelopmentSettings",
    "ProductionSettings",
    "TestingSettings",
]
