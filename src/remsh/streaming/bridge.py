"""
Queue-backed input bridge.

Adapts a blocking, push-style local input source (the terminal) into a
pull-style byte stream that the remote channel reads from.

ARCHITECTURE:
=============
    local source --read(1)--> InputPump --put--> queue --get--> QueueInputStream --> channel

- InputPump runs on its own thread and blocks on the source. A full queue
  blocks it too, so a slow channel backpressures the terminal instead of
  dropping keystrokes.
- QueueInputStream is consumed by the channel input pump. Batch reads wait
  for the first byte, then drain whatever is already buffered without
  waiting for a full buffer.
- When the source ends or fails, the pump sets the EOF flag and enqueues a
  sentinel. The flag is authoritative; the sentinel only wakes a consumer
  blocked on the queue.

Usage:
    >>> stream, pump = new_bridge(terminal.wrap_input(sys.stdin))
    >>> pump.start()
    >>> channel.set_input(stream)
"""

from __future__ import annotations

import io
import queue
import threading
from enum import Enum
from typing import Any, Protocol

from remsh.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CAPACITY = 1024

# Returned by read_one() and read_batch() once the stream has ended
END_OF_STREAM = -1

# Upper bound on how long the pump waits to enqueue the sentinel
SENTINEL_PUT_TIMEOUT = 1.0

# How often a producer blocked on a full queue checks for stop()
PUT_POLL_INTERVAL = 0.1


class _Sentinel:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<end-of-stream>"


_EOF = _Sentinel()


class ByteSource(Protocol):
    """Blocking local input: read(1) returns one byte, or b"" at end of input."""

    def read(self, size: int = -1) -> bytes: ...


class BridgeState(str, Enum):
    """Lifecycle of one bridge."""

    RUNNING = "running"
    DRAINING = "draining"
    CLOSED = "closed"


class _BridgeChannel:
    """State shared by the producer and consumer halves."""

    __slots__ = ("queue", "eof", "stopped")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.queue: queue.Queue[Any] = queue.Queue(maxsize=capacity)
        self.eof = threading.Event()
        self.stopped = threading.Event()

    @property
    def state(self) -> BridgeState:
        if not self.eof.is_set():
            return BridgeState.RUNNING
        if self.queue.empty():
            return BridgeState.CLOSED
        return BridgeState.DRAINING


class QueueInputStream(io.RawIOBase):
    """
    Consumer side of the bridge.

    Exposes ``read_one``/``read_batch``/``available`` and the standard
    binary ``io`` surface built on top of them.
    """

    def __init__(self, channel: _BridgeChannel) -> None:
        super().__init__()
        self._channel = channel

    @property
    def state(self) -> BridgeState:
        """Current bridge state."""
        return self._channel.state

    def readable(self) -> bool:
        return True

    def read_one(self, blocking: bool = True) -> int | None:
        """
        Read one byte.

        Args:
            blocking: Wait until a byte or end-of-stream arrives.

        Returns:
            The byte value, END_OF_STREAM, or None when non-blocking and
            nothing is buffered.
        """
        channel = self._channel
        if channel.eof.is_set() and channel.queue.empty():
            return END_OF_STREAM

        try:
            token = channel.queue.get(block=blocking)
        except queue.Empty:
            return None

        if token is _EOF:
            return END_OF_STREAM
        return token

    def read_batch(self, buffer: bytearray | memoryview, max_len: int | None = None) -> int:
        """
        Fill up to ``max_len`` bytes of ``buffer``.

        The first byte is waited for; the rest are taken only if already
        buffered, so the call returns as soon as the queue runs dry.

        Returns:
            Number of bytes written, or END_OF_STREAM if the stream ended
            before the first byte.
        """
        if max_len is None:
            max_len = len(buffer)
        if max_len < 0 or max_len > len(buffer):
            raise ValueError(f"max_len {max_len} out of range for buffer of {len(buffer)}")
        if max_len == 0:
            return 0

        value = self.read_one(blocking=True)
        if value is None or value == END_OF_STREAM:
            return END_OF_STREAM
        buffer[0] = value

        count = 1
        while count < max_len:
            value = self.read_one(blocking=False)
            if value is None or value == END_OF_STREAM:
                break
            buffer[count] = value
            count += 1
        return count

    def available(self) -> int:
        """Buffered byte count. Advisory only."""
        return self._channel.queue.qsize()

    def readinto(self, b: Any) -> int:
        view = memoryview(b).cast("B")
        count = self.read_batch(view)
        return 0 if count == END_OF_STREAM else count


class InputPump:
    """
    Producer side of the bridge.

    Reads the local source one byte at a time into the queue until the
    source ends or fails.
    """

    def __init__(self, source: ByteSource, channel: _BridgeChannel) -> None:
        self._source = source
        self._channel = channel
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> BridgeState:
        return self._channel.state

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Pump bytes until end of input. Never raises."""
        channel = self._channel
        try:
            while not channel.stopped.is_set():
                try:
                    data = self._source.read(1)
                except Exception as e:
                    # Read errors end the stream like a closed terminal
                    logger.debug(f"Local input stopped: {e}")
                    return
                if not data:
                    logger.debug("Local input reached end of stream")
                    return
                for byte in data:
                    if not self._put(byte):
                        logger.debug("Input pump stopped with a full queue")
                        return
        finally:
            channel.eof.set()
            try:
                if channel.stopped.is_set():
                    channel.queue.put_nowait(_EOF)
                else:
                    channel.queue.put(_EOF, timeout=SENTINEL_PUT_TIMEOUT)
            except queue.Full:
                logger.debug("Queue full, end-of-stream marker not enqueued")

    def _put(self, byte: int) -> bool:
        """Enqueue one byte, waiting for room. False once stop() was called."""
        channel = self._channel
        while not channel.stopped.is_set():
            try:
                channel.queue.put(byte, timeout=PUT_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def start(self) -> threading.Thread:
        """Run the pump on a daemon thread."""
        if self._thread is not None:
            raise RuntimeError("Input pump already started")
        self._thread = threading.Thread(
            target=self.run,
            name="remsh-input-pump",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        """
        Interrupt the source and wait for the pump thread.

        Closing the source makes a blocked read fail, which the pump treats
        as end of input. A pump waiting on a full queue gives up within
        PUT_POLL_INTERVAL.
        """
        self._channel.stopped.set()
        close = getattr(self._source, "close", None)
        if close is not None:
            close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)


def new_bridge(source: ByteSource, capacity: int = DEFAULT_CAPACITY) -> tuple[QueueInputStream, InputPump]:
    """
    Create a connected consumer stream and producer pump.

    Args:
        source: Blocking local input.
        capacity: Queue slots before the producer blocks.

    Returns:
        Tuple of (stream, pump). Call ``pump.start()`` to begin reading.
    """
    channel = _BridgeChannel(capacity)
    return QueueInputStream(channel), InputPump(source, channel)


__all__ = [
    "BridgeState",
    "ByteSource",
    "DEFAULT_CAPACITY",
    "END_OF_STREAM",
    "InputPump",
    "QueueInputStream",
    "new_bridge",
]
