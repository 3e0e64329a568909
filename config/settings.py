"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # STORAGE
    # ===================
    data_file: Path = Field(
        default=Path("data/microgreens.json"),
        description="JSON snapshot holding the whole application state"
    )

    # ===================
    # ANTHROPIC (DEMAND FORECAST)
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key; forecasting is disabled without it"
    )
    forecast_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for the weekly demand forecast"
    )
    forecast_min_history: int = Field(
        default=5,
        ge=1,
        le=1000,
        description="Completed order lines required before a forecast is requested"
    )

    # ===================
    # PLANNING SETTINGS
    # ===================
    default_yield_ratio: float = Field(
        default=5.0,
        gt=0,
        le=100,
        description="Boxes per tray used when a variety has no yield history"
    )
    yield_lookback_days: int = Field(
        default=90,
        ge=1,
        le=730,
        description="Trailing window used by the sowing planners for yield ratios"
    )
    safety_stock_horizon_days: int = Field(
        default=30,
        ge=1,
        le=120,
        description="Days simulated when checking safety stock"
    )
    upcoming_harvest_days: int = Field(
        default=14,
        ge=1,
        le=60,
        description="Days shown in the upcoming harvest calendar"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def forecast_configured(self) -> bool:
        """Check if the Claude forecast provider can be used."""
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
