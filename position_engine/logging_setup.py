"""Logging configuration for the command-line entry point."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger; unknown level names fall back to INFO."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(stream=sys.stderr, format=LOG_FORMAT, force=True)
    logging.getLogger().setLevel(resolved)

    # Third-party HTTP chatter stays out of debug output.
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
