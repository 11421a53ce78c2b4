"""Logging setup for lendingdesk.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
single Rich handler to the package logger so the CLI and library users get
the same output.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "lendingdesk"

_handler: Optional[logging.Handler] = None


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a Rich handler to the package logger.

    Calling this again only updates the level.

    Args:
        level: Level name or number
        console: Console to write to (default: stderr)

    Returns:
        The package logger
    """
    global _handler

    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    if _handler is None:
        _handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        _handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(_handler)

    return logger


def reset_logging() -> None:
    """Remove the Rich handler. Used for testing."""
    global _handler

    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
