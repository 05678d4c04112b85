"""Logging setup for the ``voicedoc`` package logger."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Configure the ``voicedoc`` logger with a single stdout handler.

    Every module logs through ``logging.getLogger(__name__)``, so all of them
    inherit this handler. Existing handlers are replaced to avoid duplicates
    when called more than once (e.g. app reloads).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger("voicedoc")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
