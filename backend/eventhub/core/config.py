"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults,
except DATABASE_URL which has none: the data layer cannot start without it.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from eventhub.core.errors import ConfigurationError


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Eventhub Data Layer"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_CONNECT_TIMEOUT: float = 10.0
    DB_ECHO: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }

    def require_database_url(self) -> str:
        if not self.DATABASE_URL or not self.DATABASE_URL.strip():
            raise ConfigurationError(
                "DATABASE_URL is not set; define it in the environment or .env",
                field="DATABASE_URL",
            )
        return self.DATABASE_URL.strip()

    def engine_options(self) -> dict:
        """Keyword arguments for create_async_engine."""
        options = {"echo": self.DB_ECHO, "pool_pre_ping": True}
        # SQLite uses a static/null pool that rejects sizing arguments
        if not (self.DATABASE_URL or "").startswith("sqlite"):
            options.update(
                pool_size=self.DB_POOL_SIZE,
                max_overflow=self.DB_MAX_OVERFLOW,
                pool_timeout=self.DB_POOL_TIMEOUT,
                pool_recycle=self.DB_POOL_RECYCLE,
            )
        return options


@lru_cache()
def get_settings() -> Settings:
    return Settings()
