"""
Connection configuration models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from remsh.config import ClientSettings


class RetryConfig(BaseModel):
    """Fixed-delay retry policy for connection establishment."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=0, ge=0)
    delay_seconds: float = Field(default=2.0, ge=0.0)


class ConnectionConfig(BaseModel):
    """Everything needed to reach and log into the remote endpoint."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(default=8101, ge=1, le=65535)
    username: str = "karaf"
    password: SecretStr = SecretStr("karaf")
    connect_timeout_seconds: float = Field(default=10.0, ge=1.0, le=120.0)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **overrides: object) -> ConnectionConfig:
        """
        Build a config from settings, applying non-None overrides.

        Overrides use this model's field names plus ``max_attempts`` and
        ``delay_seconds`` for the retry policy.
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        retry = RetryConfig(
            max_attempts=values.pop("max_attempts", settings.retry_attempts),
            delay_seconds=values.pop("delay_seconds", settings.retry_delay),
        )
        return cls(
            host=values.pop("host", settings.host),
            port=values.pop("port", settings.port),
            username=values.pop("username", settings.user),
            password=values.pop("password", settings.password),
            connect_timeout_seconds=values.pop(
                "connect_timeout_seconds", settings.connect_timeout
            ),
            retry=retry,
        )
