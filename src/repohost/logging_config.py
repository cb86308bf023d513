"""Structured logging configuration for repohost.

- JSON structured logging with StructuredFormatter
- Logger hierarchy under the ``repohost`` namespace
- Environment variable control (REPOHOST_LOG_LEVEL, REPOHOST_LOG_FORMAT)
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

# Keys redacted from log extras. Provider credentials travel in headers
# named Authorization or Private-Token, so both spellings are covered.
SENSITIVE_KEYS = {
    "password", "token", "secret", "apikey", "api_key", "access_token",
    "authorization", "private_token", "private-token", "credential", "bearer",
}

ROOT_LOGGER = "repohost"

_STANDARD_FIELDS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter.

    Outputs logs in JSON format with:
    - timestamp: UTC ISO 8601 format with 'Z' suffix
    - level: Log level name (INFO, ERROR, etc.)
    - logger: Logger name (repohost hierarchy)
    - message: Log message
    - context: Extras dict merged from LogRecord attributes

    Sensitive keys (token, authorization, private_token, ...) are redacted.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            k: ("[REDACTED]" if k.lower() in SENSITIVE_KEYS else v)
            for k, v in record.__dict__.items()
            if k not in _STANDARD_FIELDS and not k.startswith("_")
        }
        if extras:
            log_data["context"] = extras

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter, used when REPOHOST_LOG_FORMAT=text."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging for all repohost loggers.

    Args:
        level: Optional log level override. If not provided, uses
               REPOHOST_LOG_LEVEL environment variable (default: INFO).

    Environment Variables:
        REPOHOST_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
        REPOHOST_LOG_FORMAT: Output format (json, text). Default: json
    """
    if level is None:
        level = os.getenv("REPOHOST_LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)

    log_format = os.getenv("REPOHOST_LOG_FORMAT", "json").lower()
    if log_format == "text":
        formatter = TextFormatter()
    else:
        formatter = StructuredFormatter()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)

    # Only one handler, however many times this is called
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
