"""Process-wide logging setup."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from fedwork.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler and the level for the ``fedwork`` loggers."""
    resolved = (level or settings.log_level).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "fedwork": {"level": resolved, "handlers": ["console"], "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", resolved)
