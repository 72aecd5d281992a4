"""Logging configuration for the application."""

import logging
import sys

from formation_portal.core.config import settings


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.DEBUG is True, otherwise settings.LOG_LEVEL.
    Output goes to stdout.
    """
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
