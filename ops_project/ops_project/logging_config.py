"""
Logging configuration for the ledger service.

Two output styles:
- json: one JSON object per line on stdout (default outside DEBUG)
- console: human-readable lines (default under DEBUG)

Environment variables:
- LOG_FORMAT: "json" or "console"
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
"""
import json
import logging
import os
from datetime import datetime, timezone

# LogRecord attributes that are not user supplied `extra` fields
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "message", "taskName",
})


def get_logging_config(debug: bool = False) -> dict:
    """Build the Django LOGGING dict."""
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")

    if log_format == "json":
        formatters = {"json": {"()": "ops_project.logging_config.JsonFormatter"}}
        formatter = "json"
    else:
        formatters = {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        }
        formatter = "verbose"

    app_logger = {"handlers": ["console"], "level": log_level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": log_level},
            "django": dict(app_logger),
            "django.request": {
                "handlers": ["console"],
                "level": log_level if debug else "ERROR",
                "propagate": False,
            },
            "ledger_core": dict(app_logger),
            "celery": dict(app_logger),
        },
    }


class JsonFormatter(logging.Formatter):
    """
    Render a record as a JSON line:
    timestamp, level, logger, message, optional exception and `extra` fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extras:
            entry["extra"] = extras

        # Decimals, dates and UUIDs fall back to str()
        return json.dumps(entry, default=str)
