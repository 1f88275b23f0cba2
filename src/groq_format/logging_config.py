"""Logging configuration for the groq-format CLI."""

from __future__ import annotations

import logging
import sys


LOGGER_NAME = "groq_format"


def _stderr_handler(logger: logging.Logger) -> logging.Handler | None:
    """Return the handler installed by :func:`configure_logging`, if any."""
    for handler in logger.handlers:
        if handler.get_name() == LOGGER_NAME:
            return handler
    return None


def configure_logging(verbose: bool) -> None:
    """Configure logging output based on verbosity.

    Formatted queries go to stdout, so log records are written to stderr.
    Only the handler added here is touched; handlers installed by the host
    application stay in place.

    Args:
        verbose: Whether to enable DEBUG logging to stderr
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    installed = _stderr_handler(logger)

    if verbose:
        logger.setLevel(logging.DEBUG)
        if installed is None:
            handler = logging.StreamHandler(sys.stderr)
            handler.set_name(LOGGER_NAME)
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
            logger.addHandler(handler)
    else:
        logger.setLevel(logging.WARNING)
        if installed is not None:
            logger.removeHandler(installed)
