"""Logging configuration for the tidysite CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("urllib3", "requests", "MARKDOWN")


def setup_logging(verbosity: int = 1) -> logging.Logger:
    """Attach a Rich console handler to the ``tidysite`` logger.

    Parameters
    ----------
    verbosity : int, optional
        ``0`` for warnings only, ``1`` for info (default), ``2`` or more for
        debug output including timestamps and source paths.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logger = logging.getLogger("tidysite")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if verbosity < 3:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return logger


__all__ = ["setup_logging"]
