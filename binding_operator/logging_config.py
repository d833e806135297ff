"""
Structured logging configuration for the service binding operator.

JSON logs carry a trace_id (the binding's namespace/name) so that every line
of one reconciliation pass can be correlated.

Environment Variables:
    BINDING_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    BINDING_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from binding_operator.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="default/sb1")
    logger.info("Reconciling binding", extra={"secret": "secret1"})
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging() -> None:
    """
    Configure the root logger from BINDING_LOG_LEVEL / BINDING_LOG_FORMAT.

    Replaces any handler installed earlier (kopf installs its own).
    """
    level = LEVELS.get(os.getenv("BINDING_LOG_LEVEL", "INFO").upper(), logging.INFO)
    log_format = os.getenv("BINDING_LOG_FORMAT", "json").lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    handler.addFilter(TraceIDFilter())
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("kubernetes").setLevel(logging.WARNING)


class TraceLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges call-site `extra` with the adapter's trace_id
    instead of replacing it.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, trace_id: Optional[str] = None) -> TraceLoggerAdapter:
    """
    Get a logger with optional trace_id for correlation.

    Example:
        logger = get_logger(__name__, trace_id="default/sb1")
        logger.info("Bound application", extra={"application": "app1"})
        # {"timestamp": "...", "level": "INFO", "message": "Bound application",
        #  "trace_id": "default/sb1", "application": "app1"}
    """
    return TraceLoggerAdapter(logging.getLogger(name), {"trace_id": trace_id or "N/A"})


class TraceIDFilter(logging.Filter):
    """Ensures every record has a trace_id field, even from plain loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        return True
