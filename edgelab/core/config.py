"""
Configuration Management for EdgeLab.

Uses pydantic-settings for environment variable loading and validation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine Settings.

    Loads configuration from ``EDGELAB_``-prefixed environment variables
    and a .env file.
    """
    model_config = SettingsConfigDict(
        env_prefix="EDGELAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Logging
    LOG_LEVEL: str = "INFO"

    # Wagering
    DEFAULT_ASSUMED_ODDS: float = -110

    # Risk metrics
    SHARPE_ANNUALIZATION: float = Field(default=250, gt=0)
    KELLY_CAP: float = Field(default=0.25, ge=0, le=1)

    # Sample-size buckets (upper bounds, exclusive)
    SAMPLE_SIZE_INSUFFICIENT: int = Field(default=30, ge=0)
    SAMPLE_SIZE_LOW: int = Field(default=100, ge=0)
    SAMPLE_SIZE_MODERATE: int = Field(default=500, ge=0)


def get_settings() -> Settings:
    """Load settings from the current environment."""
    return Settings()
