"""Loguru configuration for the CLI.

Diagnostic logs go to stderr. User-facing progress is printed through
the rich console, so the default level keeps loguru quiet unless
something is wrong.
"""

from __future__ import annotations

import sys

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <cyan>{name}</cyan> - {message}"


def configure_logging(verbose: bool = False) -> None:
    """Install the stderr sink.

    Args:
        verbose: Emit DEBUG records (every shell command and its exit code)
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format=_FORMAT)
