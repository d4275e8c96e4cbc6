"""
Application configuration using pydantic-settings.
Loads environment variables from .env file.

Nested config groups (ToneValidationConfig, RateLimitConfig) are
env-overridable via the double-underscore delimiter, e.g.:
    TONE_VALIDATION__FREE_TIER_TOLERANCE=20
    RATE_LIMIT__MAX_ATTEMPTS=30
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ToneValidationConfig(BaseModel):
    """Allowed deviation from the neutral tone value before a setting counts as modified."""

    # Free-tier settings come from automatic tone inference, so they get the wider band
    free_tier_tolerance: int = Field(default=15, ge=0, le=50)
    # Applies to dimensions outside the tier's available controls
    gated_dimension_tolerance: int = Field(default=10, ge=0, le=50)


class RateLimitConfig(BaseModel):
    """Per user+action request limits for the entitlement API."""

    enabled: bool = True
    max_attempts: int = Field(default=10, ge=1)
    window_seconds: int = Field(default=60, ge=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # App Settings
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Nested config groups (env-overridable via SECTION__KEY format)
    tone_validation: ToneValidationConfig = Field(default_factory=ToneValidationConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
