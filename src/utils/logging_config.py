"""Structured logging configuration for the accountability tracker.

This module sets up structured logging with:
- JSON output for production (Cloud Logging compatible)
- Human-readable output for local development
- Request context binding for correlating log lines
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

HANDLER_NAME = "accountability"


def is_cloud_environment() -> bool:
    """Check if running in a cloud environment (GKE, Cloud Run, etc.)."""
    return bool(
        os.getenv("KUBERNETES_SERVICE_HOST")
        or os.getenv("K_SERVICE")  # Cloud Run
        or os.getenv("GAE_ENV")  # App Engine
    )


def setup_logging(
    level: str = "INFO",
    force_json: bool = False,
    service_name: str | None = None,
) -> None:
    """Configure structured logging for the application.

    Records from plain ``logging.getLogger(__name__)`` loggers are rendered
    by the same structlog processor chain as structlog loggers, so JSON
    output applies to every module.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        force_json: Force JSON output even in non-cloud environments
        service_name: Name of the service for log identification
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    use_json = force_json or is_cloud_environment()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)

    if use_json:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    # Repeated setup replaces our handler instead of stacking another one
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    # SQL echo is far too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_request_context(
    request_id: str | None = None,
    user_id: str | None = None,
    **kwargs: Any,
) -> None:
    """Bind request context to current execution context.

    Args:
        request_id: Unique request identifier
        user_id: User identifier for the request
        **kwargs: Additional context to bind
    """
    context = {}
    if request_id:
        context["request_id"] = request_id
    if user_id:
        context["user_id"] = user_id
    context.update(kwargs)

    if context:
        structlog.contextvars.bind_contextvars(**context)


def unbind_request_context() -> None:
    """Clear request context from current execution context."""
    structlog.contextvars.clear_contextvars()
