"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", task_id="123", actor_id="abc")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Pydantic Logfire with token from settings.

    Standard logging records are routed through Logfire's handler so they end up
    next to the spans that produced them.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="taskquest",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("workflow.submit_for_approval", task_id=task_id):
            # Your service logic here
            pass
    """
    return logfire.span(name, **attributes)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (task_id, actor_id, operation, etc.)

    Usage:
        log_with_context(logger, "info", "Task created", task_id="123", operation="create")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)
