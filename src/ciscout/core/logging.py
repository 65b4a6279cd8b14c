"""Logging setup for the command line.

Every module logs through ``get_logger(__name__)``, so all records end up
below the ``ciscout`` logger. configure_logging attaches a single console
handler there; stdout is left to the rendered scan results.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

LOGGER_NAME = "ciscout"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marks the handler installed by configure_logging
_HANDLER_ATTR = "_ciscout_console"


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when a record is emitted."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property  # type: ignore[override]
    def stream(self) -> IO[str]:
        return sys.stderr

    @stream.setter
    def stream(self, value: IO[str]) -> None:
        pass


def log_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI flags to a logging level.

    ``quiet`` wins over ``debug``, which wins over ``verbose``. Without any
    flag only warnings and errors are shown.
    """
    if quiet:
        return logging.ERROR
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Route ciscout log records to the console.

    Calling it again replaces the handler from the previous call instead of
    adding a second one.

    Args:
        debug: Show debug records, with timestamps.
        verbose: Show progress (info) records.
        quiet: Show errors only.
        stream: Write here instead of stderr.

    Returns:
        The configured ``ciscout`` logger.
    """
    level = log_level(debug=debug, verbose=verbose, quiet=quiet)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream) if stream is not None else _StderrHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT if level == logging.DEBUG else CONSOLE_FORMAT))
    setattr(handler, _HANDLER_ATTR, True)
    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger."""

    return logging.getLogger(name if name is not None else LOGGER_NAME)
