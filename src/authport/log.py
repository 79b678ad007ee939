"""Logging configuration for the ``authport`` logger hierarchy.

Modules log through ``logging.getLogger(__name__)``. :func:`setup_logging`
attaches the handlers once per CLI invocation:

* a file handler at ``<data dir>/logs/authport.log`` (INFO and above), so
  every failed login leaves a log line behind;
* with ``verbose``, a :class:`rich.logging.RichHandler` on stderr at DEBUG.

Calling it again replaces the handlers it installed earlier.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from authport.config import get_log_dir

LOGGER_NAME = "authport"
LOG_FILENAME = "authport.log"

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_MARKER = "_authport_handler"


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _MARKER, True)
    return handler


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Install the authport log handlers.

    Args:
        verbose: Also log DEBUG records to stderr through Rich.
        no_color: Disable colour in the stderr handler.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(get_log_dir() / LOG_FILENAME, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(_mark(file_handler))

    if verbose:
        console_handler = RichHandler(
            console=Console(stderr=True, no_color=no_color),
            show_path=False,
            markup=False,
        )
        console_handler.setLevel(logging.DEBUG)
        logger.addHandler(_mark(console_handler))
