"""Logging setup for the PaperBot relay.

Production output is one JSON object per line on stdout; ``debug`` switches to
a plain single-line format that is easier to read in a terminal.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "paperbot"
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")
PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s %(context_suffix)s"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Single-line text output with the structured context appended."""

    def __init__(self):
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", None)
        record.context_suffix = json.dumps(context, ensure_ascii=False, default=str) if context else ""
        return super().format(record).rstrip()


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure root logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else PlainFormatter())
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{SERVICE_NAME}.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """Attach fixed fields (user, message id) to every record as ``context``."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        if context or self.extra:
            combined_context = {**self.extra, **(context or {})}
            kwargs["extra"] = {"context": combined_context}
        return msg, kwargs
