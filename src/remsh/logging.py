"""
Logging setup.

All remsh loggers live under the ``remsh`` namespace and are rendered on
stderr through rich. Each ``-v`` on the command line lowers the threshold one
step.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "remsh"

_VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
}


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the remsh namespace.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def level_for_verbosity(verbosity: int) -> int:
    """Map a verbosity count to a logging level (3 and above is DEBUG)."""
    if verbosity < 0:
        verbosity = 0
    return _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)


def configure_logging(verbosity: int = 1, level: str | int | None = None) -> logging.Logger:
    """
    Install a rich handler on the remsh root logger.

    Args:
        verbosity: Verbosity count (1 by default, +1 per ``-v``).
        level: Explicit level overriding the verbosity mapping.

    Returns:
        The configured root logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if level is None:
        resolved = level_for_verbosity(verbosity)
    elif isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level
    logger.setLevel(resolved)

    for handler in list(logger.handlers):
        if getattr(handler, "_remsh_handler", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbosity >= 3,
        rich_tracebacks=True,
    )
    handler._remsh_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = ["get_logger", "configure_logging", "level_for_verbosity"]
