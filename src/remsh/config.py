"""
Client configuration (pydantic-settings).

Values are read from ``REMSH_*`` environment variables, and command-line
flags override them per run.

Usage:
    >>> from remsh.config import get_settings
    >>> settings = get_settings()
    >>> settings.port
    8101
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for the remote shell client."""

    model_config = SettingsConfigDict(
        env_prefix="REMSH_",
        extra="ignore",
    )

    # Endpoint
    host: str = "localhost"
    port: int = Field(default=8101, ge=1, le=65535)
    user: str = "karaf"
    password: SecretStr = SecretStr("karaf")

    # Connection establishment
    retry_attempts: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=2.0, ge=0.0)
    connect_timeout: float = Field(default=10.0, ge=1.0, le=120.0)

    # Interactive bridge
    queue_capacity: int = Field(default=1024, ge=1)
    term: str = "xterm"

    # Logging
    log_level: str = "WARNING"


_settings: ClientSettings | None = None


def get_settings() -> ClientSettings:
    """Get the process-wide settings, creating them on first use."""
    global _settings
    if _settings is None:
        _settings = ClientSettings()
    return _settings


def configure_settings(**overrides: Any) -> ClientSettings:
    """
    Replace the process-wide settings.

    Args:
        **overrides: Field values taking precedence over the environment.

    Returns:
        The new settings instance.
    """
    global _settings
    _settings = ClientSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "ClientSettings",
    "get_settings",
    "configure_settings",
    "reset_settings",
]
