"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Storage ===
    storage_backend: Literal["sqlite", "json", "memory"] = Field(
        default="sqlite",
        description="Persistence gateway implementation"
    )
    database_url: str = Field(
        default="sqlite:///./jogtracker.db",
        description="Database connection URL (sqlite backend)"
    )
    storage_dir: Path = Field(
        default=Path("./.jogtracker"),
        description="Directory for the json backend"
    )
    storage_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Nominal quota used for storage usage reporting"
    )

    # === Fix filtering ===
    min_movement_meters: float = Field(default=1.0, ge=0)
    min_segment_meters: float = Field(default=0.1, ge=0)
    max_segment_meters: float = Field(default=200.0, gt=0)

    # === Background work ===
    work_queue_strategy: Literal["thread", "inline"] = Field(
        default="thread",
        description="Deferred work backing strategy, chosen once at startup"
    )
    backup_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Period of the best-effort history backup"
    )

    @field_validator('storage_dir')
    @classmethod
    def expand_storage_dir(cls, v: Path) -> Path:
        """Allow ~ in STORAGE_DIR"""
        return v.expanduser()

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept 'debug', 'Info' etc."""
        return v.strip().upper()

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
