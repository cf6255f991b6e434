"""
Structured logging helpers for alert scraping workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

MAX_ERROR_LENGTH = 2000


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON. None-valued fields are dropped.
    """

    payload = {"event": event, **{key: value for key, value in fields.items() if value is not None}}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def describe_error(exc: BaseException) -> str:
    """
    One-line `ExceptionType: message` description, capped for storage.
    """

    message = str(exc).strip()
    description = f"{type(exc).__name__}: {message}" if message else type(exc).__name__
    return description[:MAX_ERROR_LENGTH]
