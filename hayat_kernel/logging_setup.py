"""Process-wide logging configuration."""

import logging
import os
from logging.config import dictConfig
from typing import Optional

DEFAULT_LEVEL = os.getenv("HAYAT_LOG_LEVEL", "INFO")


def _config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "std": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "std",
                "level": level,
            }
        },
        "loggers": {
            "hayat_kernel": {"level": level, "handlers": ["stdout"], "propagate": False},
        },
    }


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the ``hayat_kernel`` logger tree. Safe to call repeatedly."""
    dictConfig(_config((level or DEFAULT_LEVEL).upper()))
    return logging.getLogger("hayat_kernel")
