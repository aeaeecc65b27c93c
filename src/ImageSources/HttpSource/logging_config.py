"""
Structured Logging Utilities

Console and JSON-lines logging for the HTTP source resolver. Library modules
only obtain loggers with ``logging.getLogger(__name__)``; this module is used
by the command line (or a host application) to attach handlers, and masks
credentials before anything is written.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Optional, TextIO

LOGGER_NAME = "ImageSources.HttpSource"

_SENSITIVE_KEYS = {"authorization", "secret", "password", "basic_auth_secret", "token"}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Examples:
        >>> mask_sensitive_data({"secret": "hunter2", "uri": "https://example.org"})
        {'secret': '***masked***', 'uri': 'https://example.org'}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS and value is not None:
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_obj.update(extra_fields)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def setup_logging(
    level: str = "INFO",
    *,
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Attach a single managed handler to the package logger.

    Calling this again replaces the previously managed handler, so it is safe
    to invoke once per CLI command.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_httpsource_managed", False):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handler._httpsource_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


__all__ = ["setup_logging", "mask_sensitive_data", "JSONFormatter", "LOGGER_NAME"]
