"""Configuration settings for the Application Tracker."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Paths
    tracker_db_path: Path = Field(
        default=Path("./data/tracker.db"),
        description="Path to the SQLite tracker database",
    )

    # Listing defaults
    default_page_limit: Annotated[int, Field(gt=0)] = Field(
        default=20,
        description="Page size used when a listing request does not specify one",
    )
    max_page_limit: Annotated[int, Field(gt=0)] = Field(
        default=100,
        description="Upper bound applied to any requested page size",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def validate_page_limits(self) -> "Settings":
        """Ensure the default page size fits under the cap."""
        if self.default_page_limit > self.max_page_limit:
            raise ValueError(
                "default_page_limit must not exceed max_page_limit "
                f"({self.default_page_limit} > {self.max_page_limit})"
            )
        return self


# Singleton instance for easy import
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
