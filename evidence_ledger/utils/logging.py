"""Structured audit logging using structlog.

Stores and the evidence service emit snake_case audit events
(``evidence_registered``, ``evidence_minted``, ``contradiction_recorded``)
through structlog, separate from the loguru component logs.
"""

import sys
import uuid
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

from evidence_ledger.config.settings import settings

IS_TTY = sys.stderr.isatty()


def configure_structured_logging() -> None:
    """
    Configure structlog processors and renderer.

    Uses:
    - Console renderer when stderr is a TTY and LOG_FORMAT=console
    - JSON renderer otherwise
    - Context variables for correlation ids
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and settings.log_format.lower() == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    component: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Logger name (typically module name)
        component: Optional component name to bind
        **additional_context: Additional context to bind

    Example:
        >>> log = get_structured_logger("pipeline.sweep", component="ContradictionSweep")
        >>> log.info("sweep_started", case_id="case-1", evidence_count=12)
    """
    logger = structlog.get_logger(name)
    if component:
        logger = logger.bind(component=component)
    if additional_context:
        logger = logger.bind(**additional_context)
    return logger


def get_correlation_id() -> str:
    """Generate a correlation ID for tracing one service operation."""
    return str(uuid.uuid4())


configure_structured_logging()

__all__ = [
    "configure_structured_logging",
    "get_structured_logger",
    "get_correlation_id",
]
