"""
Structured JSON logging with OpenTelemetry trace context injection.

``setup_logging()`` configures the root logger once with a JSON handler.
Every line carries the timestamp, level, logger name and message, the
OTel trace/span ids when a span is active, and the ``widget_id`` of the
widget being processed when the caller passes one through ``extra``.

Usage::

    from dg_common.observability.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger("fetcher")
    logger.warning("fetch failed", extra={"widget_id": widget.id})
"""

import logging
import os

from opentelemetry.instrumentation.logging import LoggingInstrumentor
from pythonjsonlogger.json import JsonFormatter


_FORMAT_STRING = "%(timestamp)s %(level)s %(name)s %(message)s"
_setup_done = False


class JsonTraceFormatter(JsonFormatter):
    """JSON formatter that adds the standard service fields to every record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()
        widget_id = getattr(record, "widget_id", None)
        if widget_id is not None:
            log_record["widget_id"] = widget_id


def _level_from_env(default: int) -> int:
    name = os.environ.get("LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger with JSON output and trace context.

    Safe to call multiple times; only the first call has an effect.
    ``LOG_LEVEL`` in the environment overrides *level*.

    Args:
        level: The root log level (default ``logging.INFO``).
    """
    global _setup_done
    if _setup_done:
        return
    _setup_done = True

    # Instrument stdlib logging so OTel injects trace/span IDs
    LoggingInstrumentor().instrument(set_logging_format=False)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonTraceFormatter(_FORMAT_STRING))

    root = logging.getLogger()
    root.setLevel(_level_from_env(level))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (thin wrapper for discoverability)."""
    return logging.getLogger(name)
