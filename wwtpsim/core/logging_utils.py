# wwtpsim/core/logging_utils.py
"""
Logging utilities for wwtpsim.

Usage:
    from wwtpsim.core.logging_utils import get_logger

    logger = get_logger(__name__)
    logger.info("Inserted unit...")
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "wwtpsim"

_root_configured = False


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_str: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the package root logger.

    Call once at application startup (the CLI does). Later calls only adjust
    the level so repeated CLI invocations in one process don't stack handlers.
    """
    global _root_configured
    root = logging.getLogger(ROOT_LOGGER_NAME)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {level!r}")

    root.setLevel(level)
    if _root_configured:
        for h in root.handlers:
            h.setLevel(level)
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_str, date_format))

    root.addHandler(handler)
    _root_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the wwtpsim namespace.

    Module names already inside the package (wwtpsim.core.pipeline) are used
    as-is; anything else is nested under the package root.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
