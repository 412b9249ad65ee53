"""
Streaming between the local terminal and the remote channel.
"""

from remsh.streaming.bridge import (
    DEFAULT_CAPACITY,
    END_OF_STREAM,
    BridgeState,
    InputPump,
    QueueInputStream,
    new_bridge,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "END_OF_STREAM",
    "BridgeState",
    "InputPump",
    "QueueInputStream",
    "new_bridge",
]
