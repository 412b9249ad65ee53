"""
Pytest configuration and fixtures for remsh tests.
"""

from __future__ import annotations

import io
import threading

import pytest

from remsh.exceptions import ConnectionFailedError


# ============================================================================
# Local Input Sources
# ============================================================================


class ScriptedSource:
    """Byte source that returns scripted data, then EOF or an error."""

    def __init__(self, data: bytes = b"", error: BaseException | None = None) -> None:
        self._data = io.BytesIO(data)
        self._error = error
        self.reads = 0

    def read(self, size: int = 1) -> bytes:
        self.reads += 1
        chunk = self._data.read(size)
        if not chunk and self._error is not None:
            raise self._error
        return chunk


class GatedSource:
    """Byte source whose bytes are released one by one from the test."""

    def __init__(self) -> None:
        self._pending: list[bytes] = []
        self._cond = threading.Condition()
        self._finished = False
        self.closed = False

    def feed(self, data: bytes) -> None:
        with self._cond:
            self._pending.extend(bytes([b]) for b in data)
            self._cond.notify_all()

    def finish(self) -> None:
        with self._cond:
            self._finished = True
            self._cond.notify_all()

    def read(self, size: int = 1) -> bytes:
        with self._cond:
            while not self._pending and not self._finished and not self.closed:
                self._cond.wait()
            if self.closed:
                raise OSError("source closed")
            if self._pending:
                return self._pending.pop(0)
            return b""

    def close(self) -> None:
        with self._cond:
            self.closed = True
            self._cond.notify_all()


@pytest.fixture
def gated_source() -> GatedSource:
    """Provide a source fed by the test."""
    return GatedSource()


# ============================================================================
# Transport Mocks
# ============================================================================


class FakeSession:
    """Session that accepts or rejects a password."""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.auth_calls: list[tuple[str, str]] = []
        self.closed = False

    def authenticate(self, username: str, password: str) -> bool:
        self.auth_calls.append((username, password))
        return self.accept

    def close(self) -> None:
        self.closed = True


class FlakyConnector:
    """Connector that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, session: FakeSession | None = None) -> None:
        self.failures = failures
        self.session = session or FakeSession()
        self.calls = 0

    def connect(self, host: str, port: int) -> FakeSession:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionFailedError(host, port, f"refused #{self.calls}")
        return self.session


@pytest.fixture
def reset_client_settings():
    """Reset client settings before and after test."""
    from remsh.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_source():
    """Factory for scripted byte sources."""
    return ScriptedSource


@pytest.fixture
def make_connector():
    """Factory for connectors that fail N times, then succeed."""
    return FlakyConnector


@pytest.fixture
def make_session():
    """Factory for fake sessions."""
    return FakeSession
