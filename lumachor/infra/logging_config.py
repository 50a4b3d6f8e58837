"""Process-wide logging setup."""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

from lumachor.config import get_settings

LOGGER_ROOT = "lumachor"


class LoggingConfig:
    """Configure stdlib logging once per process from settings.log_level."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level = (level or get_settings().log_level or "INFO").upper()
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "default": {
                        "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    },
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "formatter": "default",
                    },
                },
                "loggers": {
                    LOGGER_ROOT: {"handlers": ["console"], "level": level},
                    "uvicorn": {"level": level},
                },
            }
        )
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the lumachor namespace."""
    if not name:
        return logging.getLogger(LOGGER_ROOT)
    if name.startswith(LOGGER_ROOT):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")
