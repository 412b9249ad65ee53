"""
SSH transport built on paramiko.

Provides the session and channel handles the client drives:

    client = SshClient(connect_timeout=10.0)
    client.start()
    session = client.connect("localhost", 8101)        # ConnectionFailedError
    session.authenticate("karaf", "karaf")             # -> bool
    channel = session.open_channel("shell")            # ChannelError
    channel.set_input(stream)
    channel.set_output(sys.stdout.buffer)
    channel.open()
    channel.wait_until_closed()
    client.stop()

Channel I/O is pumped by daemon threads: one forwards the input stream
upstream, two copy remote stdout and stderr into the local sinks.
"""

from __future__ import annotations

import socket
import threading
from typing import Any, BinaryIO, Literal

import paramiko

from remsh.exceptions import AuthenticationError, ChannelError, ConnectionFailedError
from remsh.logging import get_logger

logger = get_logger(__name__)

ChannelKind = Literal["shell", "exec"]

# Read size for channel pumps
CHUNK_SIZE = 1024


class RemoteChannel:
    """
    One shell or exec channel over a session.

    Created unopened by RemoteSession.open_channel(); wire the streams,
    then call open().
    """

    def __init__(
        self,
        channel: paramiko.Channel,
        kind: ChannelKind,
        command: str | None = None,
    ) -> None:
        self._channel = channel
        self.kind = kind
        self.command = command
        self._input: Any = None
        self._output: BinaryIO | None = None
        self._error: BinaryIO | None = None
        self._threads: list[threading.Thread] = []
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened and not self._channel.closed

    def set_input(self, stream: Any) -> None:
        """Set the stream forwarded upstream. Must provide read(n) -> bytes."""
        self._input = stream

    def set_output(self, sink: BinaryIO) -> None:
        """Set the sink for remote stdout."""
        self._output = sink

    def set_error(self, sink: BinaryIO) -> None:
        """Set the sink for remote stderr."""
        self._error = sink

    def open(self) -> None:
        """
        Start the remote shell or command and begin pumping I/O.

        Raises:
            ChannelError: If the remote side rejects the request.
        """
        if self._opened:
            raise ChannelError(self.kind, "already open")

        try:
            if self.kind == "exec":
                self._channel.exec_command(self.command or "")
            else:
                self._channel.invoke_shell()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise ChannelError(self.kind, str(e) or type(e).__name__, cause=e) from e

        self._opened = True
        self._start_thread("input", self._forward_input)
        self._start_thread("stdout", self._copy_output, self._channel.recv, self._output)
        self._start_thread("stderr", self._copy_output, self._channel.recv_stderr, self._error)
        logger.debug(f"Opened {self.kind} channel")

    def wait_until_closed(self, timeout: float | None = None) -> int | None:
        """
        Block until the remote side closes the channel.

        Returns:
            The remote exit status if one was sent, else None.
        """
        for thread in self._threads:
            if thread.name.endswith(("stdout", "stderr")):
                thread.join(timeout)

        status = None
        if self._channel.exit_status_ready():
            status = self._channel.recv_exit_status()
            logger.debug(f"Remote exit status: {status}")
        self.close()
        return status

    def resize(self, cols: int, rows: int) -> None:
        """Forward a local terminal resize to the remote pty."""
        if self.kind == "shell" and self.is_open:
            self._channel.resize_pty(width=cols, height=rows)

    def close(self) -> None:
        self._channel.close()

    # =========================================================================
    # Pumps
    # =========================================================================

    def _start_thread(self, name: str, target: Any, *args: Any) -> None:
        thread = threading.Thread(
            target=target,
            args=args,
            name=f"remsh-channel-{name}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _forward_input(self) -> None:
        """Send the input stream upstream, then half-close."""
        stream = self._input
        try:
            while stream is not None:
                data = stream.read(CHUNK_SIZE)
                if not data:
                    break
                self._channel.sendall(data)
        except (OSError, EOFError, ValueError, paramiko.SSHException) as e:
            logger.debug(f"Channel input stopped: {e}")
        finally:
            try:
                self._channel.shutdown_write()
            except (OSError, EOFError, paramiko.SSHException) as e:
                logger.debug(f"Channel half-close failed: {e}")

    @staticmethod
    def _copy_output(recv: Any, sink: BinaryIO | None) -> None:
        """Copy remote output into a local sink until the remote side closes."""
        try:
            while True:
                data = recv(CHUNK_SIZE)
                if not data:
                    return
                if sink is not None:
                    sink.write(data)
                    sink.flush()
        except (OSError, EOFError, ValueError, paramiko.SSHException) as e:
            logger.debug(f"Channel output stopped: {e}")


class RemoteSession:
    """An SSH session over one transport, before and after authentication."""

    def __init__(self, transport: paramiko.Transport, host: str, port: int) -> None:
        self._transport = transport
        self.host = host
        self.port = port

    @property
    def transport(self) -> paramiko.Transport:
        return self._transport

    @property
    def is_active(self) -> bool:
        return self._transport.is_active()

    @property
    def is_authenticated(self) -> bool:
        return self._transport.is_authenticated()

    def authenticate(self, username: str, password: str) -> bool:
        """
        Authenticate with a password.

        Returns:
            True on success, False if the credentials were rejected.

        Raises:
            AuthenticationError: If the exchange itself failed.
        """
        try:
            self._transport.auth_password(username, password)
        except paramiko.AuthenticationException as e:
            logger.debug(f"Password rejected for {username}: {e}")
            return False
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise AuthenticationError(username, f"Authentication failure: {e}", cause=e) from e
        return self._transport.is_authenticated()

    def open_channel(
        self,
        kind: ChannelKind,
        command: str | None = None,
        *,
        term: str = "xterm",
        size: tuple[int, int] = (80, 24),
        environment: dict[str, str] | None = None,
    ) -> RemoteChannel:
        """
        Open a channel and prepare it for a shell or a command.

        Shell channels get a pty of the given terminal type and size.

        Args:
            kind: "shell" for interactive use, "exec" for a single command.
            command: Command line for exec channels.
            term: Terminal type for the pty.
            size: (columns, rows) of the pty.
            environment: Variables to set before the shell starts.

        Raises:
            ChannelError: If the channel cannot be opened.
        """
        if kind not in ("shell", "exec"):
            raise ChannelError(str(kind), "unsupported channel type")
        if kind == "exec" and not command:
            raise ChannelError(kind, "no command given")

        try:
            channel = self._transport.open_session()
            if kind == "shell":
                cols, rows = size
                channel.get_pty(term=term, width=cols, height=rows)
            if environment:
                channel.update_environment(environment)
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise ChannelError(kind, str(e) or type(e).__name__, cause=e) from e

        return RemoteChannel(channel, kind, command)

    def close(self) -> None:
        self._transport.close()


class SshClient:
    """Opens SSH sessions and closes them all on stop()."""

    def __init__(self, connect_timeout: float = 10.0) -> None:
        self.connect_timeout = connect_timeout
        self._sessions: list[RemoteSession] = []
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._started = True

    def stop(self) -> None:
        """Close every session opened by this client."""
        sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._started = False

    def connect(self, host: str, port: int) -> RemoteSession:
        """
        Open a transport and complete the SSH handshake.

        Raises:
            ConnectionFailedError: On socket or negotiation failure.
        """
        if not self._started:
            raise RuntimeError("SshClient not started")

        try:
            sock = socket.create_connection((host, port), timeout=self.connect_timeout)
        except OSError as e:
            raise ConnectionFailedError(host, port, str(e) or type(e).__name__, cause=e) from e

        transport = paramiko.Transport(sock)
        try:
            transport.start_client(timeout=self.connect_timeout)
        except (paramiko.SSHException, EOFError, OSError) as e:
            transport.close()
            raise ConnectionFailedError(host, port, str(e) or type(e).__name__, cause=e) from e

        key = transport.get_remote_server_key()
        logger.debug(f"Connected to {host}:{port} ({key.get_name()} {key.get_fingerprint().hex()})")

        session = RemoteSession(transport, host, port)
        self._sessions.append(session)
        return session
