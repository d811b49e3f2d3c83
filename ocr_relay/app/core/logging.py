"""Loguru sink setup. Bound `event` is shown next to the message."""
from __future__ import annotations

import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "{extra[service_name]} | {extra[event]} | {message} | {extra}"
)


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.configure(extra={"service_name": "-", "event": "-"})
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT, backtrace=False)
