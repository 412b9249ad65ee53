"""
Local terminal support.

Usage:
    >>> from remsh.terminal import get_terminal
    >>> terminal = get_terminal()
    >>> source = terminal.wrap_input(sys.stdin)
    >>> ...
    >>> terminal.restore()
"""

from remsh.terminal.modes import (
    Terminal,
    TerminalInput,
    TerminalMode,
    default_lc_ctype,
    enter_raw_mode,
    exit_raw_mode,
    get_terminal,
    get_terminal_size,
    is_tty,
    remove_resize_handler,
    setup_resize_handler,
)

__all__ = [
    # Handle
    "Terminal",
    "TerminalInput",
    "get_terminal",
    # Modes
    "TerminalMode",
    "enter_raw_mode",
    "exit_raw_mode",
    "get_terminal_size",
    "is_tty",
    "setup_resize_handler",
    "remove_resize_handler",
    # Environment
    "default_lc_ctype",
]
