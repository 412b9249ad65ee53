"""
remsh data models.
"""

from remsh.models.config import ConnectionConfig, RetryConfig

__all__ = ["ConnectionConfig", "RetryConfig"]
