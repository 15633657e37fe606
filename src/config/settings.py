"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.ports import DeploymentMode


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Deployment mode - development echoes codes in responses
    environment: DeploymentMode = DeploymentMode.PRODUCTION
    log_level: str = "INFO"

    # Data store configuration
    storage_backend: Literal["postgres", "memory"] = "postgres"
    database_url: str | None = None  # Includes the privileged credential
    pool_min_size: int = 2  # Minimum connections in pool
    pool_max_size: int = 10  # Maximum connections in pool
    db_timeout_seconds: float = 5.0  # Wait for a pooled connection
    statement_timeout_ms: int = 5000  # Server-side per-statement bound

    # Verification settings
    code_ttl_minutes: int = 15  # Verification window duration
    institution_suffix: str = ".edu"

    # Email delivery - console logging when no API key is set
    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: str | None = None
    email_from: str = "Peach Lease <verify@peachlease.com>"
    email_timeout_seconds: float = 5.0

    # CORS
    cors_allow_origins: list[str] = ["*"]

    @field_validator("environment", mode="before")
    @classmethod
    def unknown_environment_is_production(cls, value: object) -> DeploymentMode:
        """Only an explicit development setting enables development mode."""
        if isinstance(value, DeploymentMode):
            return value
        if str(value).strip().lower() == DeploymentMode.DEVELOPMENT.value:
            return DeploymentMode.DEVELOPMENT
        return DeploymentMode.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
