"""
Tests for the session runner (batch and interactive wiring).
"""

from __future__ import annotations

import io
from unittest.mock import MagicMock, patch

import pytest

from remsh.exceptions import AuthenticationError, ConnectionFailedError
from remsh.models.config import ConnectionConfig, RetryConfig
from remsh.shell import build_command, run_client
from remsh.streaming.bridge import QueueInputStream

SHELL_PATH = "remsh.shell"


@pytest.fixture
def config() -> ConnectionConfig:
    return ConnectionConfig(
        host="broker",
        port=8102,
        username="admin",
        password="secret",
        retry=RetryConfig(max_attempts=2, delay_seconds=0.5),
    )


@pytest.fixture
def session():
    session = MagicMock()
    session.open_channel.return_value.wait_until_closed.return_value = 0
    return session


def _run(config, commands, client, **kwargs):
    return run_client(
        config,
        commands,
        stdin=kwargs.pop("stdin", io.BytesIO()),
        stdout=io.BytesIO(),
        stderr=io.BytesIO(),
        client=client,
        **kwargs,
    )


class TestBuildCommand:
    """Test build_command()."""

    def test_joins_with_spaces_and_newline(self):
        """Tokens are joined with spaces and newline-terminated."""
        assert build_command(["bundle:list", "-t", "0"]) == "bundle:list -t 0\n"

    def test_single_token(self):
        assert build_command(["shutdown"]) == "shutdown\n"


class TestBatchMode:
    """Commands on the command line run over an exec channel."""

    def test_runs_command(self, config, session):
        """Batch mode sends the joined command and exits 0."""
        client = MagicMock()
        with patch(f"{SHELL_PATH}.establish", return_value=session) as mock_establish:
            with patch(f"{SHELL_PATH}.get_terminal") as mock_get_terminal:
                code = _run(config, ["osgi:list", "-s"], client)

        assert code == 0
        mock_establish.assert_called_once_with(client, "broker", 8102, "admin", "secret", 2, 0.5)
        session.open_channel.assert_called_once_with("exec", "osgi:list -s\n")
        channel = session.open_channel.return_value
        sent_input = channel.set_input.call_args[0][0]
        assert sent_input.read() == b""
        channel.open.assert_called_once()
        channel.wait_until_closed.assert_called_once()
        mock_get_terminal.assert_not_called()
        client.start.assert_called_once()
        client.stop.assert_called_once()


class TestInteractiveMode:
    """No commands: the terminal is bridged to a shell channel."""

    def test_wires_bridge_to_shell(self, config, session, gated_source):
        """The shell channel reads from the bridge and the terminal is restored."""
        client = MagicMock()
        terminal = MagicMock()
        terminal.wrap_input.return_value = gated_source

        with patch(f"{SHELL_PATH}.establish", return_value=session):
            with patch(f"{SHELL_PATH}.get_terminal", return_value=terminal):
                with patch(f"{SHELL_PATH}.setup_resize_handler", return_value=False):
                    with patch(f"{SHELL_PATH}.default_lc_ctype", return_value="en_US.UTF-8"):
                        code = _run(config, [], client, stdin="STDIN")

        assert code == 0
        terminal.wrap_input.assert_called_once_with("STDIN")
        args, kwargs = session.open_channel.call_args
        assert args == ("shell",)
        assert kwargs["environment"] == {"LC_CTYPE": "en_US.UTF-8"}
        channel = session.open_channel.return_value
        assert isinstance(channel.set_input.call_args[0][0], QueueInputStream)
        channel.wait_until_closed.assert_called_once()
        # Teardown interrupts the local input and restores the terminal
        assert gated_source.closed is True
        terminal.restore.assert_called_once()
        client.stop.assert_called_once()

    def test_resize_handler_installed_and_removed(self, config, session, gated_source):
        """Terminal resizes are forwarded while the shell runs."""
        terminal = MagicMock()
        terminal.wrap_input.return_value = gated_source

        with patch(f"{SHELL_PATH}.establish", return_value=session):
            with patch(f"{SHELL_PATH}.get_terminal", return_value=terminal):
                with patch(f"{SHELL_PATH}.setup_resize_handler", return_value=True) as mock_setup:
                    with patch(f"{SHELL_PATH}.remove_resize_handler") as mock_remove:
                        _run(config, None, MagicMock())

        channel = session.open_channel.return_value
        mock_setup.assert_called_once_with(channel.resize)
        mock_remove.assert_called_once()


class TestFailures:
    """Fatal errors exit 1 after cleanup."""

    def test_connection_failure(self, config, capsys):
        """Exhausted retries print the error and exit 1."""
        client = MagicMock()
        error = ConnectionFailedError("broker", 8102, "Connection refused")
        with patch(f"{SHELL_PATH}.establish", side_effect=error):
            with patch(f"{SHELL_PATH}.get_terminal") as mock_get_terminal:
                code = _run(config, ["ls"], client)

        assert code == 1
        err = capsys.readouterr().err
        assert "Unable to connect to broker:8102: Connection refused" in err
        assert "Traceback" not in err
        client.stop.assert_called_once()
        mock_get_terminal.assert_not_called()

    def test_authentication_failure(self, config, capsys):
        """Rejected credentials exit 1 with a terse message."""
        with patch(f"{SHELL_PATH}.establish", side_effect=AuthenticationError("admin")):
            code = _run(config, ["ls"], MagicMock())

        assert code == 1
        assert "Authentication failure" in capsys.readouterr().err

    def test_verbose_prints_traceback(self, config, capsys):
        """Above verbosity 1 the full diagnostic is printed."""
        with patch(f"{SHELL_PATH}.establish", side_effect=RuntimeError("boom")):
            code = _run(config, ["ls"], MagicMock(), verbosity=2)

        assert code == 1
        err = capsys.readouterr().err
        assert "Traceback" in err
        assert "boom" in err

    def test_cleanup_failure_does_not_mask_error(self, config, capsys):
        """A failing client.stop() is swallowed, the original error is shown."""
        client = MagicMock()
        client.stop.side_effect = OSError("already closed")
        with patch(f"{SHELL_PATH}.establish", side_effect=AuthenticationError("admin")):
            code = _run(config, ["ls"], client)

        assert code == 1
        err = capsys.readouterr().err
        assert "Authentication failure" in err
        assert "already closed" not in err

    def test_terminal_restored_on_channel_failure(self, config, session, gated_source):
        """The terminal is restored even when the shell channel fails."""
        terminal = MagicMock()
        terminal.wrap_input.return_value = gated_source
        session.open_channel.side_effect = RuntimeError("channel refused")

        with patch(f"{SHELL_PATH}.establish", return_value=session):
            with patch(f"{SHELL_PATH}.get_terminal", return_value=terminal):
                code = _run(config, [], MagicMock())

        assert code == 1
        terminal.restore.assert_called_once()

    def test_keyboard_interrupt(self, config, session):
        """Ctrl+C outside raw mode exits 130."""
        session.open_channel.return_value.wait_until_closed.side_effect = KeyboardInterrupt
        with patch(f"{SHELL_PATH}.establish", return_value=session):
            code = _run(config, ["sleep"], MagicMock())

        assert code == 130
