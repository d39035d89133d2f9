"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"
    APP_VERSION: str = "1.0.0"

    # Redis (rate limiting and metrics)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 60  # seconds

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Provider APIs
    GITHUB_API_URL: str = "https://api.github.com"
    NETLIFY_API_URL: str = "https://api.netlify.com/api/v1"
    VERCEL_API_URL: str = "https://api.vercel.com"
    USER_AGENT: str = "Portfolio-Generator"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Deployment
    DEFAULT_BRANCH: str = "main"
    SITE_SUFFIX_LENGTH: int = 6
    VERCEL_REGION: str = "iad1"
    PAGES_POLL_ATTEMPTS: int = 5
    PAGES_POLL_INTERVAL: float = 1.0  # seconds, doubled after each attempt
    PAGES_POLL_MAX_INTERVAL: float = 8.0

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            import json

            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
