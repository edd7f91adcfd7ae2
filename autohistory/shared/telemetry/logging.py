"""Logging for autohistory: module loggers under the "autohistory" namespace."""

import logging
import sys

from autohistory.core.config import get_settings

LOGGER_NAMESPACE = "autohistory"


def setup_logging() -> logging.Logger:
    """Attach a stdout handler to the autohistory logger (once).

    For hosts without their own logging config. The level is DEBUG when
    settings.debug is set (captured records are logged at DEBUG), else INFO.
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(logging.DEBUG if get_settings().debug else logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass __name__)."""
    return logging.getLogger(name)
