"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from fretninja.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    questions = settings.QUESTIONS_PER_SESSION
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    APP_NAME: str = "FretNinja"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["http://localhost:4321"]

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "fretninja"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "fretninja"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for Alembic migrations."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Identity - header set by the upstream auth layer
    USER_ID_HEADER: str = "X-User-Id"

    # Quiz sessions
    QUESTIONS_PER_SESSION: int = 10
    SESSIONS_PAGE_LIMIT_MAX: int = 100

    # Stats
    TREND_WINDOW_DAYS: int = 7

    # Error patterns (feeds personalized practice tips)
    ERROR_PATTERNS_MIN_ERRORS: int = 5
    ERROR_PATTERNS_SAMPLE_LIMIT: int = 100


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
