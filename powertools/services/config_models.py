"""
Pydantic models for powertools configuration.

Uses pydantic-settings for environment variable validation and type coercion.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Environment Settings (from .env file)
# =============================================================================


class LoggingSettings(BaseSettings):
    """Console and audit logging settings."""

    model_config = SettingsConfigDict(env_prefix="POWERTOOLS_LOG_", env_file=".env", extra="ignore")

    level: str = "WARNING"
    dir: str = "workspace/logs"
    audit: bool = True

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class PowertoolsSettings(BaseSettings):
    """
    Master settings class for the command line.

    Usage:
        settings = PowertoolsSettings()
        print(settings.data_dir)
        print(settings.logging.level)
    """

    model_config = SettingsConfigDict(env_prefix="POWERTOOLS_", env_file=".env", extra="ignore")

    data_dir: str = "workspace"
    registry_file: str = "registry.yaml"
    repositories_dir: str | None = None
    clone_url: str = "ssh://{username}@localhost:29418/{repository}"
    default_user: str | None = None

    @field_validator("clone_url")
    @classmethod
    def require_placeholder(cls, v: str) -> str:
        if "{repository}" not in v:
            raise ValueError("clone_url must contain a {repository} placeholder")
        return v

    @property
    def repositories_path(self) -> Path:
        if self.repositories_dir:
            return Path(self.repositories_dir)
        return Path(self.data_dir) / "git"

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


# =============================================================================
# Server Settings (stored in the registry)
# =============================================================================


class ServerSettingModel(BaseModel):
    """A hosting-service setting as written by the config command."""

    key: str = Field(..., min_length=1, description="Dotted setting key, e.g. git.defaultAccessRestriction")
    value: str = Field(default="", description="Setting value, stored as text")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if any(c.isspace() for c in v):
            raise ValueError("Setting keys cannot contain whitespace")
        return v

    @field_validator("value")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()
