"""Configuration settings for application analytics."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsConfig(BaseSettings):
    """Analytics configuration settings.

    All settings have sensible defaults and can be overridden via
    environment variables with `ANALYTICS_` prefix or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    upcoming_window_days: Annotated[int, Field(gt=0)] = Field(
        default=30,
        description="Days ahead to look for upcoming interviews",
    )
    top_companies_limit: Annotated[int, Field(gt=0)] = Field(
        default=10,
        description="Number of companies kept in the per-company breakdown",
    )
    follow_up_after_days: Annotated[int, Field(gt=0)] = Field(
        default=7,
        description="Days without response before an application needs a follow-up",
    )


_analytics_config: AnalyticsConfig | None = None


def get_analytics_config() -> AnalyticsConfig:
    """Get the analytics configuration singleton."""
    global _analytics_config
    if _analytics_config is None:
        _analytics_config = AnalyticsConfig()
    return _analytics_config


def reset_analytics_config() -> None:
    """Reset the analytics configuration singleton (useful for testing)."""
    global _analytics_config
    _analytics_config = None
