"""
remsh exception hierarchy.

Errors raised while establishing a session, authenticating, or driving the
remote channel. All of them derive from RemshError so callers can handle the
whole family at the process boundary.
"""

from __future__ import annotations


class RemshError(Exception):
    """
    Base exception for remsh.

    Args:
        message: Human-readable error message.
        cause: Underlying exception, kept for diagnostics.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause
        # Keep tracebacks short in terse mode
        self.__suppress_context__ = True

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionFailedError(RemshError):
    """Transport-level failure while opening a session. Retryable."""

    def __init__(
        self,
        host: str,
        port: int,
        reason: str = "",
        cause: BaseException | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        message = f"Unable to connect to {host}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause=cause)


class AuthenticationError(RemshError):
    """Credentials were rejected by the remote endpoint. Never retried."""

    def __init__(
        self,
        username: str | None = None,
        message: str = "Authentication failure",
        cause: BaseException | None = None,
    ) -> None:
        self.username = username
        super().__init__(message, cause=cause)


# =============================================================================
# Channel Errors
# =============================================================================


class ChannelError(RemshError):
    """Failure opening or driving the remote channel."""

    def __init__(
        self,
        kind: str,
        reason: str = "",
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.reason = reason
        message = f"Channel '{kind}' failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause=cause)


# =============================================================================
# Local Input Errors
# =============================================================================


class LocalSourceError(RemshError):
    """
    Local input read failure.

    Raised by terminal input sources. The input pump converts it into a
    clean end-of-stream, so it never reaches the channel consumer.
    """

    def __init__(self, message: str = "Local input closed", cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)


__all__ = [
    "RemshError",
    "ConnectionFailedError",
    "AuthenticationError",
    "ChannelError",
    "LocalSourceError",
]
