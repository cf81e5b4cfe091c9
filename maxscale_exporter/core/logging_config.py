"""
Structured logging configuration.

Provides:
- JSON formatted logs for log aggregation
- Human-readable logs for development
- Request IDs for scrape correlation
- Redaction of credentials
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from maxscale_exporter.config import Settings


def add_app_context(settings: Settings) -> Processor:
    """Build a processor that stamps service name and version on each entry."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = settings.app_name
        event_dict["version"] = settings.app_version
        return event_dict

    return processor


def add_request_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request context from contextvars.

    Set by RequestContextMiddleware for each incoming request.
    """
    from maxscale_exporter.core.context import get_request_context

    for key, value in get_request_context().items():
        if value is not None:
            event_dict.setdefault(key, value)

    return event_dict


SENSITIVE_KEYS = {"password", "token", "secret", "authorization", "api_key"}


def censor_sensitive_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace values of credential-like keys with a placeholder."""
    for key in list(event_dict.keys()):
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"

    return event_dict


def setup_logging(settings: Settings) -> None:
    """
    Configure process-wide structured logging.

    json: one JSON object per line on stdout
    console: colorized key=value lines
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        add_app_context(settings),
        add_request_context,
        censor_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors = shared_processors + [
            structlog.processors.JSONRenderer()
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        ]

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("upstream_fetched", url=url, status_code=200)
    """
    return structlog.get_logger(name)
