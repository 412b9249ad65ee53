"""
Terminal mode management utilities.

Provides TTY state management for raw mode terminal operations, an
interruptible input wrapper for the local terminal, and locale detection
for the remote shell environment. Supports Unix (Linux, macOS) via termios.
"""

from __future__ import annotations

import locale
import os
import select
import sys
import threading
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable

from remsh.exceptions import LocalSourceError
from remsh.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TerminalMode:
    """
    Container for terminal mode state.

    Stores the original terminal settings for restoration.
    """

    original_settings: Any | None = None
    is_raw: bool = False
    platform: str = ""

    @classmethod
    def detect_platform(cls) -> str:
        """Detect current platform."""
        if sys.platform == "darwin":
            return "macos"
        elif sys.platform.startswith("linux"):
            return "linux"
        elif sys.platform == "win32":
            return "windows"
        return "unknown"


# Global terminal mode state
_terminal_mode = TerminalMode()


def is_tty() -> bool:
    """Check if stdin is a TTY."""
    return sys.stdin.isatty()


def get_terminal_size() -> tuple[int, int]:
    """
    Get current terminal size.

    Returns:
        Tuple of (columns, rows).
    """
    try:
        size = os.get_terminal_size()
        return size.columns, size.lines
    except OSError:
        return 80, 24  # Default fallback


def enter_raw_mode() -> bool:
    """
    Enter raw terminal mode (unbuffered, no echo).

    Raw mode:
    - Disables line buffering
    - Disables local echo
    - Disables signal generation (Ctrl+C, Ctrl+Z), so they reach the remote shell

    Returns:
        True if successful, False if not supported.

    Note:
        Always call exit_raw_mode() to restore terminal state.
    """
    global _terminal_mode

    if _terminal_mode.is_raw:
        return True  # Already in raw mode

    _terminal_mode.platform = TerminalMode.detect_platform()

    if _terminal_mode.platform == "windows":
        return False
    return _enter_raw_mode_unix()


def exit_raw_mode() -> bool:
    """
    Exit raw terminal mode and restore original settings.

    Returns:
        True if successful, False if not in raw mode.
    """
    global _terminal_mode

    if not _terminal_mode.is_raw:
        return False  # Not in raw mode

    return _exit_raw_mode_unix()


def _enter_raw_mode_unix() -> bool:
    """Enter raw mode on Unix systems."""
    global _terminal_mode

    if not is_tty():
        return False

    try:
        import termios
        import tty

        fd = sys.stdin.fileno()
        _terminal_mode.original_settings = termios.tcgetattr(fd)

        tty.setraw(fd)
        _terminal_mode.is_raw = True

        return True

    except (ImportError, OSError, termios.error):
        return False


def _exit_raw_mode_unix() -> bool:
    """Exit raw mode on Unix systems."""
    global _terminal_mode

    if _terminal_mode.original_settings is None:
        return False

    try:
        import termios

        fd = sys.stdin.fileno()
        termios.tcsetattr(fd, termios.TCSADRAIN, _terminal_mode.original_settings)

        _terminal_mode.original_settings = None
        _terminal_mode.is_raw = False

        return True

    except (ImportError, OSError, termios.error):
        return False


# =============================================================================
# Locale
# =============================================================================


def default_lc_ctype() -> str:
    """
    Character type locale to export to the remote shell.

    Uses $LC_CTYPE when set, otherwise ``<language>.<encoding>`` from the
    local locale settings (for example ``en_US.UTF-8``).
    """
    ctype = os.environ.get("LC_CTYPE")
    if ctype:
        return ctype

    language = locale.getlocale()[0] or "en_US"
    encoding = locale.getpreferredencoding(False) or "UTF-8"
    if encoding.lower().replace("-", "") == "utf8":
        encoding = "UTF-8"
    return f"{language}.{encoding}"


# =============================================================================
# Interruptible Input
# =============================================================================


class TerminalInput:
    """
    Blocking byte source over a file descriptor that can be interrupted.

    ``read()`` waits on the descriptor and on a private wake-up pipe.
    ``close()`` writes to the pipe, so a reader blocked on the terminal
    fails with LocalSourceError instead of hanging forever. Both pipe ends
    are released by close(), or by the blocked reader once it wakes.
    """

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._wake_r: int | None
        self._wake_w: int | None
        self._wake_r, self._wake_w = os.pipe()
        self._lock = threading.Lock()
        self._reading = False
        self._closed = False

    def __enter__(self) -> TerminalInput:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def fileno(self) -> int:
        return self._fd

    def read(self, size: int = 1) -> bytes:
        if size is None or size < 0:
            size = 1024
        with self._lock:
            if self._closed:
                raise LocalSourceError("Terminal input closed")
            self._reading = True
            wake_r = self._wake_r

        try:
            try:
                readable, _, _ = select.select([self._fd, wake_r], [], [])
            except (OSError, ValueError) as e:
                raise LocalSourceError("Terminal input unavailable", cause=e) from e

            if wake_r in readable or self._closed:
                raise LocalSourceError("Terminal input closed")

            try:
                return os.read(self._fd, size)
            except OSError as e:
                raise LocalSourceError("Terminal read failed", cause=e) from e
        finally:
            with self._lock:
                self._reading = False
                if self._closed:
                    self._release_read_end()

    def close(self) -> None:
        """Wake any blocked reader and release the wake-up pipe."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                os.write(self._wake_w, b"\0")
            except OSError:
                pass
            os.close(self._wake_w)
            self._wake_w = None
            # A reader inside select() releases the read end itself
            if not self._reading:
                self._release_read_end()

    def _release_read_end(self) -> None:
        if self._wake_r is not None:
            os.close(self._wake_r)
            self._wake_r = None

    def __del__(self) -> None:
        for fd in (getattr(self, "_wake_r", None), getattr(self, "_wake_w", None)):
            if fd is None:
                continue
            try:
                os.close(fd)
            except OSError:
                pass


class Terminal:
    """
    Handle on the local terminal for an interactive session.

    Created by get_terminal(), which enters raw mode when possible.
    """

    def __init__(self, raw: bool = False) -> None:
        self.raw = raw
        self._inputs: list[TerminalInput] = []

    def wrap_input(self, stream: BinaryIO | Any) -> TerminalInput:
        """Wrap a stream (typically sys.stdin) in an interruptible source."""
        fd = stream if isinstance(stream, int) else stream.fileno()
        wrapped = TerminalInput(fd)
        self._inputs.append(wrapped)
        return wrapped

    def restore(self) -> None:
        """Interrupt wrapped inputs and leave raw mode."""
        for wrapped in self._inputs:
            wrapped.close()
        self._inputs.clear()
        if self.raw:
            exit_raw_mode()
            self.raw = False


def get_terminal() -> Terminal:
    """Get the local terminal, switched to raw mode when stdin is a TTY."""
    raw = enter_raw_mode()
    if not raw:
        logger.debug("Raw mode unavailable, using line-buffered input")
    return Terminal(raw=raw)


# =============================================================================
# SIGWINCH Handler (Unix only)
# =============================================================================


def setup_resize_handler(callback: Callable[[int, int], Any]) -> bool:
    """
    Setup terminal resize signal handler.

    Args:
        callback: Function to call with (cols, rows) on resize.

    Returns:
        True if handler was installed successfully.
    """
    if TerminalMode.detect_platform() == "windows":
        return False

    try:
        import signal

        def sigwinch_handler(signum: int, frame: Any) -> None:
            cols, rows = get_terminal_size()
            try:
                callback(cols, rows)
            except Exception as e:
                logger.debug(f"Resize forwarding failed: {e}")

        signal.signal(signal.SIGWINCH, sigwinch_handler)
        return True

    except (ImportError, ValueError, OSError, AttributeError):
        return False


def remove_resize_handler() -> bool:
    """
    Remove terminal resize signal handler.

    Returns:
        True if handler was removed successfully.
    """
    if TerminalMode.detect_platform() == "windows":
        return False

    try:
        import signal

        signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        return True

    except (ImportError, ValueError, OSError, AttributeError):
        return False
