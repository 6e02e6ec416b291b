"""
Settings for the voyage reporting API, read from the environment (or .env).

    DATABASE_URL        SQLAlchemy URL, SQLite by default
    ENFORCE_BLS_LIMIT   reject cargo above the vessel's BLS (default true)
    ENVIRONMENT         development | production
    LOG_LEVEL           root log level
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========================================================================
    # Database
    # ========================================================================
    database_url: str = "sqlite:///./voyage_reports.db"
    db_echo: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # ========================================================================
    # Server
    # ========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ========================================================================
    # CORS (report entry and review front-ends)
    # ========================================================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    cors_credentials: bool = True
    cors_methods: str = "GET,POST,OPTIONS"
    cors_headers: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ========================================================================
    # Reporting rules
    # ========================================================================
    enforce_bls_limit: bool = True

    # ========================================================================
    # Runtime
    # ========================================================================
    environment: str = "development"
    log_level: str = "info"
    # Return exception messages in 500 responses
    debug: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def validate_production_settings(config: Settings) -> None:
    """
    Refuse to start a production deployment on development defaults.

    Raises:
        ValueError: localhost CORS origin or SQLite database in production
    """
    if not config.is_production:
        return
    if any("localhost" in origin.lower() for origin in config.cors_origins_list):
        raise ValueError("CORS_ORIGINS must not include localhost in production")
    if config.is_sqlite:
        raise ValueError(
            "DATABASE_URL must point to a server database in production "
            "(vessel row locks need SELECT ... FOR UPDATE)"
        )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
validate_production_settings(settings)
