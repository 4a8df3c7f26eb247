"""Logging setup for the backup-plans command line."""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _resolve_level(value: Union[int, str, None]) -> int:
    if isinstance(value, int):
        return value
    for candidate in (value, os.environ.get("LOG_LEVEL")):
        if isinstance(candidate, str):
            level = logging.getLevelName(candidate.strip().upper())
            if isinstance(level, int):
                return level
    return logging.INFO


def configure_logging(level: Union[int, str, None] = None) -> None:
    resolved = _resolve_level(level)
    root = logging.getLogger()
    if not root.hasHandlers():
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    else:
        root.setLevel(resolved)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "backup_plans")
