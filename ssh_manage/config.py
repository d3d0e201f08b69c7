"""
Centralized configuration management for ssh_manage.

This module provides a unified configuration system with support for:
- Environment variables
- Runtime configuration
- Validation using Pydantic
"""

import os
import shlex
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_PROBE_COMMAND,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_TOKEN_LENGTH,
    MAX_TOKEN_LENGTH,
    NO_SERVERS_MESSAGE,
    PROBE_SUCCESS_MARKER,
    EnvironmentVariable,
    LogLevel,
)


class DatabaseSettings(BaseModel):
    """Database connection configuration."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DATABASE_URL.value, "sqlite:///./ssh_manage.db"
        ),
        description="Database connection string",
    )
    echo: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DB_ECHO.value, "false").lower()
        == "true",
        description="Echo SQL statements",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.LOG_LEVEL.value, LogLevel.WARNING.value
        ),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class ProbeConfig(BaseModel):
    """Configuration of the external reachability check."""

    command: List[str] = Field(
        default_factory=lambda: shlex.split(
            os.getenv(EnvironmentVariable.SSH_CHECK_COMMAND.value, DEFAULT_PROBE_COMMAND)
        ),
        description="Argument vector prefix of the check executable",
    )
    timeout_seconds: float = Field(
        default_factory=lambda: float(
            os.getenv(EnvironmentVariable.SSH_CHECK_TIMEOUT.value, str(DEFAULT_PROBE_TIMEOUT))
        ),
        gt=0,
        description="Seconds before the check is killed and reported as timed out",
    )
    success_marker: str = Field(
        default=PROBE_SUCCESS_MARKER,
        min_length=1,
        description="Substring of the combined output that signals success",
    )

    @field_validator("command")
    def validate_command(cls, v: List[str]) -> List[str]:
        """Reject an empty argument vector."""
        if not v:
            raise ValueError("Probe command cannot be empty")
        return v


class TokenConfig(BaseModel):
    """Bearer token generation settings."""

    length: int = Field(
        default_factory=lambda: int(
            os.getenv(EnvironmentVariable.TOKEN_LENGTH.value, str(DEFAULT_TOKEN_LENGTH))
        ),
        ge=1,
        le=MAX_TOKEN_LENGTH,
        description="Number of characters in a generated token",
    )


class ServerDefaults(BaseModel):
    """Defaults applied to new server profiles and listing responses."""

    ssh_username: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DEFAULT_SSH_USERNAME.value, "root"
        ),
        min_length=1,
        description="SSH username used when 'add' is called without --username",
    )
    no_servers_message: str = Field(
        default=NO_SERVERS_MESSAGE, description="Error shown when an account has no servers"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    # Sub-configurations
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings, description="Database configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    probe: ProbeConfig = Field(default_factory=ProbeConfig, description="Probe configuration")
    token: TokenConfig = Field(default_factory=TokenConfig, description="Token configuration")
    servers: ServerDefaults = Field(
        default_factory=ServerDefaults, description="Server profile defaults"
    )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
