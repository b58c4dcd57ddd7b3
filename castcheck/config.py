"""
Application configuration using pydantic-settings.

Loads configuration from environment variables (prefix ``CASTCHECK_``) with
sensible defaults.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CASTCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"
    max_upload_size_mb: int = 50

    # Presentation
    currency_symbol: str = "RM"

    # Verification policy (amounts in the statement's base currency unit)
    severity_high_threshold: float = 10_000
    severity_medium_threshold: float = 1_000
    strict_invariants: bool = True
    sign_aware_cross_references: bool = True
    mapping_confidence_threshold: float = 50.0
    parallel_verification: bool = False

    # Extraction
    extraction_provider: str = "json"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # Job analytics sink
    analytics_webhook_url: Optional[str] = None
    analytics_timeout_seconds: float = 5.0

    # Error tracking
    sentry_dsn: Optional[str] = None
    environment: str = "development"

    @property
    def max_upload_size_bytes(self) -> int:
        """Get maximum upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
