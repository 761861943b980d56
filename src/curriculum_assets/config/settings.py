"""Configuration management for Curriculum Assets.

This module provides:
- Settings class for environment variable configuration using pydantic-settings
- Path helpers for the asset root, staging area and mapping file
- Singleton pattern for settings access
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Uses pydantic-settings for type-safe configuration loading with
    automatic environment variable parsing and validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./curriculum_assets.db",
        description="Database connection URL"
    )
    db_timeout_sec: float = Field(
        default=10.0,
        description="Upper bound for a single database call"
    )

    # File system
    asset_root: str = Field(
        default="./asset",
        description="Root directory holding one folder per curriculum"
    )
    staging_dir: str = Field(
        default="uploads",
        description="Upload staging directory, relative to asset_root"
    )
    fs_timeout_sec: float = Field(
        default=30.0,
        description="Upper bound for a single file system call"
    )

    # Mapping
    mapping_file: str = Field(
        default="./project_list.yaml",
        description="Static curriculum/month to book id table"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_dir: str = Field(
        default="logs",
        description="Directory for the rotating log file"
    )

    @field_validator("db_timeout_sec", "fs_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError("Timeout must be greater than zero")
        return v

    @field_validator("staging_dir")
    @classmethod
    def validate_staging_dir(cls, v: str) -> str:
        """Staging must live directly under the asset root."""
        if not v or "/" in v.strip("/") or v in (".", ".."):
            raise ValueError("staging_dir must be a single directory name")
        return v.strip("/")

    @property
    def asset_root_path(self) -> Path:
        return Path(self.asset_root)

    @property
    def staging_path(self) -> Path:
        return Path(self.asset_root) / self.staging_dir

    @property
    def mapping_path(self) -> Path:
        return Path(self.mapping_file)


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings singleton instance.

    Uses lru_cache to ensure only one Settings instance is created
    and reused throughout the application lifecycle.

    Returns:
        Settings instance loaded from environment variables
    """
    return Settings()
