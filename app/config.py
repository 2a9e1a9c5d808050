"""
Configuration module for the subscription credit API.

This module centralizes all environment variables and runtime configuration
using pydantic-settings for type-safe configuration management.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # CORS Configuration
    allowed_origin: str = Field(
        default="https://example.com",
        validation_alias="ALLOWED_ORIGIN",
        description="Allowed CORS origin for API requests"
    )

    # Cron Authentication (scheduler -> monthly credit endpoint)
    subscription_cron_api_key: str = Field(
        default="",
        validation_alias="SUBSCRIPTION_CRON_API_KEY",
        description="Bearer secret required to trigger the monthly credit run"
    )

    # Supabase Configuration
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias="SUPABASE_URL",
        description="Supabase project URL"
    )

    supabase_service_key: Optional[str] = Field(
        default=None,
        validation_alias="SUPABASE_SERVICE_KEY",
        description="Supabase service role key"
    )

    # Monthly Credit Scheduler
    credit_scheduler_enabled: bool = Field(
        default=True,
        validation_alias="CREDIT_SCHEDULER_ENABLED",
        description="Enable/disable the in-process monthly credit scheduler"
    )

    credit_schedule_day: int = Field(
        default=1,
        ge=1,
        le=28,
        validation_alias="CREDIT_SCHEDULE_DAY",
        description="Day of month (UTC) on which the scheduled credit run fires"
    )

    credit_schedule_hour: int = Field(
        default=0,
        ge=0,
        le=23,
        validation_alias="CREDIT_SCHEDULE_HOUR",
        description="Hour (UTC) at which the scheduled credit run fires"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level name (DEBUG, INFO, WARNING, ...)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
