"""
remsh: remote shell client for SSH management endpoints.

Usage:
    >>> from remsh import ConnectionConfig, run_client
    >>> run_client(ConnectionConfig(host="localhost", port=8101), ["osgi:list"])
    0
"""

from remsh.exceptions import (
    AuthenticationError,
    ChannelError,
    ConnectionFailedError,
    LocalSourceError,
    RemshError,
)
from remsh.models.config import ConnectionConfig, RetryConfig
from remsh.shell import run_client
from remsh.streaming.bridge import new_bridge
from remsh.transport.establish import establish

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Running
    "run_client",
    "establish",
    "new_bridge",
    # Config
    "ConnectionConfig",
    "RetryConfig",
    # Errors
    "RemshError",
    "ConnectionFailedError",
    "AuthenticationError",
    "ChannelError",
    "LocalSourceError",
]
