"""Structured logging utilities using structlog for pipeline context and tracing."""

import os
import sys
import uuid
from typing import Any, Optional
import structlog
from structlog.processors import JSONRenderer
from structlog.contextvars import merge_contextvars

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context variables so a tick's submission_id reaches every component log
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
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
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_correlation_id() -> str:
    """
    Generate a correlation ID for tracing one tick across components.

    Returns:
        UUID string for correlation
    """
    return str(uuid.uuid4())


def bind_submission_context(
    submission_id: str,
    kind: str,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Bind submission context into structlog contextvars.

    Every structlog call made while the submission is processed (tasks,
    aggregator, stores) carries these keys until clear_submission_context().

    Args:
        submission_id: Submission being processed
        kind: Submission kind (complaint/plantation)
        correlation_id: Optional tick correlation ID
    """
    context: dict[str, Any] = {"submission_id": submission_id, "kind": kind}
    if correlation_id:
        context["correlation_id"] = correlation_id
    structlog.contextvars.bind_contextvars(**context)


def clear_submission_context() -> None:
    """Remove submission keys bound by bind_submission_context()."""
    structlog.contextvars.unbind_contextvars("submission_id", "kind", "correlation_id")


# Configure on module import
configure_structured_logging()


__all__ = [
    "get_correlation_id",
    "bind_submission_context",
    "clear_submission_context",
    "configure_structured_logging",
]
