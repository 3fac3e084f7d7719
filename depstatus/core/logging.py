"""Structured logging configuration — structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        DEPSTATUS_LOG_LEVEL  — log level (default: WARNING)
        DEPSTATUS_LOG_FORMAT — console | json (default: console)
        DEPSTATUS_LOG_COMMANDS — set to 1 to keep per-command spawn and
                                 completion records at DEBUG

    An explicit *level* wins over the environment.
    """
    log_level = (level or os.environ.get("DEPSTATUS_LOG_LEVEL", "WARNING")).upper()
    log_format = os.environ.get("DEPSTATUS_LOG_FORMAT", "console").lower()
    log_commands = os.environ.get("DEPSTATUS_LOG_COMMANDS", "").lower() in ("1", "true", "yes")

    # check_all spawns one process per ecosystem; their records drown -v output.
    runner_level = "INFO" if log_level == "DEBUG" and not log_commands else log_level

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so that stdout stays clean for --json output.
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "depstatus": {"level": log_level},
                "depstatus.runner": {"level": runner_level},
            },
        }
    )
