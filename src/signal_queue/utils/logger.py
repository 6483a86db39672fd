"""
Module: logger.py
Description: Structured logging configuration for signal queue backends.

Configures structlog for JSON output optimized for CloudWatch Logs.
Every send/receive/delete attempt is logged through here with the
target queue, payload and raw transport result as structured fields.

Key Components:
- JSON output for CloudWatch compatibility
- Timestamp and log level processors
- Level filtering driven by SIGNAL_QUEUE_LOG_LEVEL
- get_logger() helper function

Dependencies: structlog, logging, datetime
"""

import logging
from datetime import datetime, timezone

import structlog

from signal_queue.config.settings import settings


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """
    Add log level to event dictionary.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with level
    """
    event_dict["level"] = method_name.upper()
    return event_dict


structlog.configure(
    processors=[
        _add_timestamp,
        _add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(default=str),
    ],
    logger_factory=structlog.WriteLoggerFactory(),
    # Drop records below the configured level before any processing
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level)
    ),
    # Not cached so structlog.testing.capture_logs() sees every logger
    cache_logger_on_first_use=False,
)


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Messages received", queue=url, count=3)
        {"event": "Messages received", "queue": "...", "count": 3, "timestamp": "...", "level": "DEBUG"}
    """
    return structlog.get_logger(name)
