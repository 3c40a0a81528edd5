"""
Structured logging configuration.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger


def configure_logging(app_name: str, log_level: str = "INFO") -> logging.Logger:
    """
    Configure JSON logging for the application.

    Args:
        app_name: Name of the root logger for the application
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


APP_LOGGER = "menumate"


def get_logger(name: str) -> logging.Logger:
    """Module loggers hang off the application logger so they share its handler."""
    return logging.getLogger(f"{APP_LOGGER}.{name}")


def token_preview(token) -> str:
    """Session tokens are capabilities; only a prefix goes to the logs."""
    if not token:
        return "-"
    return f"{token[:8]}..."
