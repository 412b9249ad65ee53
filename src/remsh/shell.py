"""
Remote shell session runner.

Connects to the endpoint, then either runs one command (batch mode) or
bridges the local terminal to a remote shell (interactive mode) until the
remote side closes the channel.

Flow:
1. Establish an authenticated session (retrying while the endpoint starts up)
2. Batch: exec channel with the joined command line and empty input
   Interactive: raw terminal -> input bridge -> shell channel with a pty
3. Wait for the channel to close
4. Always stop the client and restore the terminal, even on failure
"""

from __future__ import annotations

import io
import os
import sys
from typing import Any, BinaryIO, Sequence

from rich.console import Console
from rich.markup import escape

from remsh.config import get_settings
from remsh.logging import get_logger
from remsh.models.config import ConnectionConfig
from remsh.streaming.bridge import InputPump, new_bridge
from remsh.terminal.modes import (
    Terminal,
    default_lc_ctype,
    get_terminal,
    get_terminal_size,
    remove_resize_handler,
    setup_resize_handler,
)
from remsh.transport.establish import establish
from remsh.transport.ssh import RemoteChannel, RemoteSession, SshClient

logger = get_logger(__name__)

err_console = Console(stderr=True)


def build_command(commands: Sequence[str]) -> str:
    """Join command tokens into one newline-terminated command line."""
    return " ".join(commands) + "\n"


def run_batch(
    session: RemoteSession,
    command: str,
    stdout: BinaryIO,
    stderr: BinaryIO,
) -> int | None:
    """
    Run one command and wait for the channel to close.

    Returns:
        Remote exit status, if the server sent one.
    """
    channel = session.open_channel("exec", command)
    channel.set_input(io.BytesIO(b""))
    return _drive(channel, stdout, stderr)


def run_interactive(
    session: RemoteSession,
    terminal: Terminal,
    stdin: Any,
    stdout: BinaryIO,
    stderr: BinaryIO,
    *,
    queue_capacity: int = 1024,
    term: str | None = None,
) -> tuple[InputPump, int | None]:
    """
    Bridge the local terminal to a remote shell until the channel closes.

    Returns:
        Tuple of (input pump, remote exit status). The caller stops the
        pump during cleanup.
    """
    channel = session.open_channel(
        "shell",
        term=term or os.environ.get("TERM") or get_settings().term,
        size=get_terminal_size(),
        environment={"LC_CTYPE": default_lc_ctype()},
    )

    stream, pump = new_bridge(terminal.wrap_input(stdin), capacity=queue_capacity)
    pump.start()
    channel.set_input(stream)

    resizing = setup_resize_handler(channel.resize)
    try:
        return pump, _drive(channel, stdout, stderr)
    finally:
        if resizing:
            remove_resize_handler()


def _drive(channel: RemoteChannel, stdout: BinaryIO, stderr: BinaryIO) -> int | None:
    channel.set_output(stdout)
    channel.set_error(stderr)
    channel.open()
    return channel.wait_until_closed()


def run_client(
    config: ConnectionConfig,
    commands: Sequence[str] | None = None,
    *,
    verbosity: int = 1,
    stdin: Any = None,
    stdout: BinaryIO | None = None,
    stderr: BinaryIO | None = None,
    client: SshClient | None = None,
) -> int:
    """
    Run the client in batch or interactive mode.

    Args:
        config: Endpoint, credentials and retry policy.
        commands: Command tokens. Empty or None selects interactive mode.
        verbosity: Above 1, failures print a full traceback.
        stdin: Local input for interactive mode (defaults to sys.stdin).
        stdout: Sink for remote stdout (defaults to sys.stdout.buffer).
        stderr: Sink for remote stderr (defaults to sys.stderr.buffer).
        client: Pre-built SSH client, mainly for tests.

    Returns:
        Exit code (0 for success, 1 for error, 130 if interrupted).
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout.buffer
    stderr = stderr if stderr is not None else sys.stderr.buffer

    if client is None:
        client = SshClient(connect_timeout=config.connect_timeout_seconds)
    terminal: Terminal | None = None
    pump: InputPump | None = None

    try:
        client.start()
        session = establish(
            client,
            config.host,
            config.port,
            config.username,
            config.password.get_secret_value(),
            config.retry.max_attempts,
            config.retry.delay_seconds,
        )

        if commands:
            status = run_batch(session, build_command(commands), stdout, stderr)
        else:
            terminal = get_terminal()
            pump, status = run_interactive(
                session,
                terminal,
                stdin,
                stdout,
                stderr,
                queue_capacity=get_settings().queue_capacity,
            )
        logger.debug(f"Channel closed (remote status {status})")
        return 0

    except KeyboardInterrupt:
        err_console.print("\n[yellow]Session interrupted.[/]")
        return 130

    except Exception as e:
        if verbosity > 1:
            err_console.print_exception()
        else:
            err_console.print(escape(str(e) or type(e).__name__))
        return 1

    finally:
        _cleanup(client, terminal, pump)


def _cleanup(client: SshClient, terminal: Terminal | None, pump: InputPump | None) -> None:
    """Best-effort teardown. Failures are logged, never raised."""
    if pump is not None:
        try:
            pump.stop(timeout=1.0)
        except Exception as e:
            logger.debug(f"Stopping input pump failed: {e}")
    try:
        client.stop()
    except Exception as e:
        logger.debug(f"Stopping client failed: {e}")
    if terminal is not None:
        try:
            terminal.restore()
        except Exception as e:
            logger.debug(f"Restoring terminal failed: {e}")
