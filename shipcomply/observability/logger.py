"""
Structured logging for shipcomply

Every module logs through a child of the ``shipcomply`` logger. Output is
one JSON object per line (python-json-logger) or plain text, always on
stderr so CLI reports on stdout stay parseable.
"""
import logging
import os
import sys
import time
from typing import Any

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "shipcomply"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FIELDS = "%(asctime)s %(levelname)-7s %(name)s [%(module)s:%(funcName)s] %(message)s"


class ComplianceJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for compliance events.

    Renames the standard attributes to timestamp/level/logger/module/function
    and keeps any ``extra`` fields (shipment_id, kind, country_code, ...)
    as top-level keys.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName


def _formatter(format_type: str) -> logging.Formatter:
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FIELDS, datefmt="%Y-%m-%d %H:%M:%S")
    return ComplianceJsonFormatter(fmt=JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stderr handler.

    Args:
        name: Logger name; configure ``shipcomply`` to cover the package
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default LOG_LEVEL, then INFO)
        format_type: "json" or "text" (default LOG_FORMAT, then json)

    Returns:
        The configured logger
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    format_type = (format_type or os.getenv("LOG_FORMAT") or "json").lower()

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(_formatter(format_type))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger under the ``shipcomply`` hierarchy.

    The package logger is set up with defaults the first time any module
    asks for a logger.

    Args:
        name: Usually ``__name__``

    Returns:
        Logger instance
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logger(ROOT_LOGGER_NAME)

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_shipment_report(logger: logging.Logger, report: Any) -> None:
    """Log the outcome of one shipment check as a single event."""
    stats = report.stats
    cross_border = report.cross_border
    logger.info(
        f"Checked shipment {report.shipment_id}: "
        f"{stats.non_compliant} non-compliant, {stats.warnings} warning(s)",
        extra={
            "shipment_id": report.shipment_id,
            "is_international": cross_border.is_international,
            "compliant": stats.compliant,
            "non_compliant": stats.non_compliant,
            "warnings": stats.warnings,
            "classifier_degraded": cross_border.classifier_degraded,
            "fallback_notes": [n for n in cross_border.notes if n.startswith("Built-in defaults")],
        },
    )


class log_operation:
    """
    Context manager that logs start, completion and failure of an operation
    with its duration.

    Usage:
        with log_operation("Seeding default rule catalog", logger=logger, source=path):
            loader.initialize()
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time = 0.0

    def _fields(self, **fields) -> dict:
        return {"operation": self.operation_name, **fields, **self.extra_fields}

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.debug(f"Starting: {self.operation_name}", extra=self._fields())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = round(time.monotonic() - self.start_time, 3)

        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name} in {duration}s",
                extra=self._fields(duration_seconds=duration, status="success"),
            )
        else:
            self.logger.error(
                f"Failed: {self.operation_name} after {duration}s",
                extra=self._fields(
                    duration_seconds=duration,
                    status="error",
                    error_type=exc_type.__name__,
                    error_message=str(exc_val),
                ),
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
