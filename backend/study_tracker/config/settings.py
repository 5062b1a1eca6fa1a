"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from study_tracker.config import settings

    # Access settings
    db_url = settings.DATABASE_URL or settings.POSTGRES_URL
    window = settings.RECENT_WINDOW_DAYS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Study Tracker"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "studytracker"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "studytracker"

    # Full SQLAlchemy URL, takes precedence over POSTGRES_* when set
    # (e.g. sqlite+aiosqlite:///./study.db for local development)
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def SQLALCHEMY_URL(self) -> str:
        """Connection URL actually used by the engine."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Analytics
    # IANA zone name used for day/hour bucketing; empty means server local time
    ANALYTICS_TIMEZONE: str = ""
    RECENT_WINDOW_DAYS: int = 7
    STREAK_LOOKBACK_DAYS: int = 30

    # Insight thresholds
    ACCURACY_LOW_THRESHOLD: float = 50.0
    ACCURACY_HIGH_THRESHOLD: float = 80.0
    ESTIMATE_BUFFER_PERCENT: int = 30
    UNDERESTIMATE_RATIO: float = 1.2
    UNDERESTIMATE_MIN_TASKS: int = 2

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
