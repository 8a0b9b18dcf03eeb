"""Structured logging configuration for the MCP test harness."""

import logging
import sys
from typing import Any, TextIO

import structlog


def configure_logging(
    level: str = "INFO", json_logs: bool = True, stream: TextIO = sys.stdout
) -> None:
    """Configure structured logging for the harness.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to use JSON formatting (True) or human-readable (False)
        stream: Output stream for logs (sys.stdout or sys.stderr)
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=stream,
        format="%(message)s",
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="%H:%M:%S"),
                structlog.dev.ConsoleRenderer(colors=False),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_stderr_logging(level: str = "WARNING", json_logs: bool = False) -> None:
    """Configure logging to stderr so console results stay clean on stdout.

    Args:
        level: Log level (default: WARNING to reduce noise)
        json_logs: Whether to use JSON formatting (default: False for CLI readability)
    """
    configure_logging(level=level, json_logs=json_logs, stream=sys.stderr)
