"""Logging configuration."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s| %(name)s: %(message)s"
DATE_FORMAT = "%d-%m-%Y %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging to stdout.

    Unknown level names fall back to INFO. aiohttp is kept at WARNING so
    per-request chatter does not drown the LTV log.
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
