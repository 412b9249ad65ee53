"""
Transport layer: SSH sessions and connection establishment.
"""

from remsh.transport.establish import (
    Fatal,
    Retry,
    RetryState,
    Success,
    attempt,
    connect_with_retry,
    establish,
)
from remsh.transport.ssh import RemoteChannel, RemoteSession, SshClient

__all__ = [
    # SSH
    "SshClient",
    "RemoteSession",
    "RemoteChannel",
    # Establishment
    "RetryState",
    "Success",
    "Retry",
    "Fatal",
    "attempt",
    "connect_with_retry",
    "establish",
]
