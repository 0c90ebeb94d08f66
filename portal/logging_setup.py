"""Logging configuration for the portal API and the autosave client.

Both halves log through module loggers (`logging.getLogger(__name__)`) with
`event_key k=v` messages; this module installs the single stdout handler they
share. `LOG_LEVEL` raises or lowers the portal loggers without touching
uvicorn's.
"""

from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Optional


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s:%(name)s:%(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": "INFO", "handlers": ["console"]},
        "loggers": {
            "portal": {"level": level},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once.

    Does nothing when the root logger already has handlers (reloaders, test
    runners, or a host application that owns logging).
    """
    if logging.getLogger().handlers:
        return
    dictConfig(_dict_config((level or os.getenv("LOG_LEVEL") or "INFO").upper()))


__all__ = ["configure_logging"]
