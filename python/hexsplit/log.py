"""Logging setup for command-line and script use.

The library itself only creates module loggers under the ``hexsplit``
namespace; call :func:`setup_logging` to see their output.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "hexsplit"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# marks handlers installed here so repeated calls replace only those
_OWNED = "_hexsplit_owned"


def _owned_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    setattr(handler, _OWNED, True)
    return handler


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Send ``hexsplit`` log records to stdout and optionally to a file.

    Calling it again replaces the handlers of the previous call; handlers
    attached to the package logger by the caller are left in place.

    Parameters
    ----------
    level : logging level, e.g. ``logging.DEBUG``
    log_file : optional path of a log file, overwritten on each call

    Returns
    -------
    The ``hexsplit`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _OWNED, False):
            logger.removeHandler(handler)
            handler.close()

    logger.addHandler(_owned_handler(logging.StreamHandler(sys.stdout), level))
    if log_file:
        logger.addHandler(
            _owned_handler(logging.FileHandler(log_file, mode="w", encoding="utf-8"), level)
        )

    return logger
