"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    backend_base_url: str
    backend_access_token: str | None = None
    backend_refresh_token: str | None = None
    edamam_app_id: str
    edamam_app_key: str
    edamam_base_url: str = "https://api.edamam.com/api/food-database/v2"
    http_timeout_seconds: float = 15
    nutrient_fetch_timeout_seconds: float = 10
    nutrient_retry_attempts: int = 1
    search_limit: int = 5
    search_cache_ttl_seconds: int = 3600
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
