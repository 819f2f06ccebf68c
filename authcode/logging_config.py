"""
Logging configuration.

Emits one JSON object per log record on stdout. Context passed through
``extra={...}`` (provider, phase, error kind) is lifted into the JSON
payload so failed logins can be filtered by provider.
"""

import json
import logging
import os
from datetime import UTC, datetime


# Keys accepted from ``extra={...}`` on log calls.
CONTEXT_FIELDS = ("provider", "phase", "error_kind", "status_code")


class JsonFormatter(logging.Formatter):
    """
    Custom JSON log formatter.

    Produces structured logs that log collectors can index without parsing.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A JSON string representing the log record.
        """
        log_object = {
            "timestamp": datetime.now(UTC).isoformat(),
            "severity": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_object[key] = value

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, default=str)


def setup_global_logging() -> None:
    """
    Configure global logging.

    Installs a single stdout handler with the JSON formatter on the root
    logger. The level comes from LOG_LEVEL (default INFO).
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    # Remove previously installed handlers to avoid duplicate logs
    for h in root_logger.handlers[:-1]:
        root_logger.removeHandler(h)
