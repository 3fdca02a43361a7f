"""
Logging setup for repoaudit.

Modules log through ``logging.getLogger(__name__)``; nothing is configured on
import. Applications call :func:`configure_logging` once to get rich-rendered
output on the ``repoaudit`` logger.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "repoaudit"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Attach a RichHandler to the package logger.

    Calling this again replaces the previously installed handler instead of
    stacking a second one.

    Args:
        level: Logging level name or number.
        console: Optional rich console (stderr by default).

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
