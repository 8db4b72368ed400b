"""Logging helpers."""

from __future__ import annotations

import logging

from fbdict.core.config import config

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Configure root logging and return the package logger.

    Args:
        level: Logging level name or number. Defaults to ``config.log_level``.

    Returns:
        The ``fbdict`` logger.
    """
    logging.basicConfig(
        level=level if level is not None else config.log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    return logging.getLogger("fbdict")
