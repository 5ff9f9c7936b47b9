"""
Logging configuration for ProbeScope.

Log records always go to stderr: stdout is reserved for command output
such as completion scripts and candidate lists.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handlers = []


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``probescope`` logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives a plain-text copy of the log

    Returns:
        The package logger
    """
    logger = logging.getLogger("probescope")
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False

    rich_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    _handlers.append(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _handlers.append(file_handler)

    for handler in _handlers:
        logger.addHandler(handler)

    return logger
