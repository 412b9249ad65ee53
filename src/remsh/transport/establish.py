"""
Connection establishment with bounded retries.

The remote endpoint may still be starting up when the client runs, so
transport failures are retried a fixed number of times with a fixed delay.
Authentication failures are never retried.

Each attempt is a pure step:

    attempt(state, connect) -> Success(session) | Retry(next_state) | Fatal(error)

and establish() drives the steps, sleeping and printing a notice between
them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable, Protocol, Union

from rich.console import Console

from remsh.exceptions import AuthenticationError, ConnectionFailedError
from remsh.logging import get_logger

logger = get_logger(__name__)

console = Console()


class Session(Protocol):
    def authenticate(self, username: str, password: str) -> bool: ...

    def close(self) -> None: ...


class Connector(Protocol):
    def connect(self, host: str, port: int) -> Session: ...


@dataclass(frozen=True)
class RetryState:
    """Attempt counter and policy for one establish() call."""

    attempt: int = 0
    max_attempts: int = 0
    delay_seconds: float = 0.0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


@dataclass(frozen=True)
class Success:
    session: Session


@dataclass(frozen=True)
class Retry:
    state: RetryState
    error: ConnectionFailedError


@dataclass(frozen=True)
class Fatal:
    error: ConnectionFailedError


Outcome = Union[Success, Retry, Fatal]


def attempt(state: RetryState, connect: Callable[[], Session]) -> Outcome:
    """
    Make one connection attempt.

    Args:
        state: Current retry state.
        connect: Opens a session or raises ConnectionFailedError.

    Returns:
        Success with the session, Retry with the advanced state, or Fatal
        once no retries remain.
    """
    try:
        return Success(connect())
    except ConnectionFailedError as e:
        if state.exhausted:
            return Fatal(e)
        return Retry(replace(state, attempt=state.attempt + 1), e)


def connect_with_retry(
    connector: Connector,
    host: str,
    port: int,
    max_attempts: int = 0,
    delay_seconds: float = 2.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
    notify: Callable[[str], None] | None = None,
) -> Session:
    """
    Open a session, retrying transport failures.

    Makes at most ``max_attempts + 1`` attempts.

    Raises:
        ConnectionFailedError: The last failure, once attempts are exhausted.
    """
    if notify is None:
        notify = console.print

    state = RetryState(max_attempts=max_attempts, delay_seconds=delay_seconds)
    while True:
        outcome = attempt(state, lambda: connector.connect(host, port))
        if isinstance(outcome, Success):
            return outcome.session
        if isinstance(outcome, Fatal):
            raise outcome.error

        state = outcome.state
        logger.debug(f"Connection attempt failed: {outcome.error}")
        sleep(state.delay_seconds)
        notify(f"retrying (attempt {state.attempt}) ...")


def establish(
    connector: Connector,
    host: str,
    port: int,
    username: str,
    password: str,
    max_attempts: int = 0,
    delay_seconds: float = 2.0,
    *,
    sleep: Callable[[float], None] = time.sleep,
    notify: Callable[[str], None] | None = None,
) -> Session:
    """
    Open and authenticate a session.

    Args:
        connector: Object whose connect(host, port) opens a session.
        host: Remote host.
        port: Remote port.
        username: Login name.
        password: Login password.
        max_attempts: Retries after the first failed connection attempt.
        delay_seconds: Pause before each retry.
        sleep: Sleep function, replaceable in tests.
        notify: Receives one progress line per retry. Defaults to stdout.

    Returns:
        An authenticated session.

    Raises:
        ConnectionFailedError: If no session could be opened.
        AuthenticationError: If the credentials were rejected.
    """
    session = connect_with_retry(
        connector,
        host,
        port,
        max_attempts,
        delay_seconds,
        sleep=sleep,
        notify=notify,
    )

    if not session.authenticate(username, password):
        session.close()
        raise AuthenticationError(username)

    logger.info(f"Authenticated as {username} on {host}:{port}")
    return session
