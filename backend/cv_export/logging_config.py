"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

_NOISY_LOGGERS = ("httpcore", "httpx", "hpack", "urllib3", "sqlalchemy.engine")
SERVICE_NAME = "cv-export"


def service_context(service: str, environment: Optional[str] = None) -> structlog.types.Processor:
    """Processor that stamps the service name (and deployment mode) on each event."""
    static = {"service": service}
    if environment:
        static["environment"] = environment

    def _add(logger: object, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
        for key, value in static.items():
            event_dict.setdefault(key, value)
        return event_dict

    return _add


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    service: str = SERVICE_NAME,
    environment: Optional[str] = None,
) -> None:
    """Configure structlog and stdlib logging for the export service.

    Console output is human-readable; the optional log file gets one JSON
    object per line so export diagnostics can be shipped elsewhere.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file path to also write logs to.
        service: Name stamped on every event.
        environment: Deployment mode (APP_ENV), stamped next to the service.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        service_context(service, environment),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(log_level)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        root_logger.addHandler(file_handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
