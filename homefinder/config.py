"""
Application configuration using pydantic-settings.

Loads environment variables from .env file and provides typed access
to configuration values throughout the application.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Persistence
    database_url: str
    database_echo: bool = False

    # Session tokens are issued elsewhere; we only verify them
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    auth_cookie_name: str = "token"

    # S3-compatible object storage holding listing and agent images
    storage_bucket: Optional[str] = None
    storage_endpoint_url: Optional[str] = None
    storage_region: Optional[str] = None
    storage_key_id: Optional[str] = None
    storage_application_key: Optional[str] = None
    image_url_ttl_seconds: int = 3600

    # Search behaviour
    default_page_size: int = 12
    max_page_size: int = 48
    personalization_limit: int = 20

    # Application settings
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:8080"]
    log_level: str = "INFO"
    debug: bool = False
    app_name: str = "Homefinder API"
    app_version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once and reuse
    the same instance throughout the application lifecycle.
    """
    return Settings()
