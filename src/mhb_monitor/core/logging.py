"""Logging configuration for the monitoring service."""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from .config import Settings


def setup_logging(settings: Settings) -> None:
    """Set up structured logging configuration."""

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    # Configure structlog
    renderers: list[Processor] = (
        [structlog.dev.ConsoleRenderer()]
        if settings.debug
        else [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(default=str),
        ]
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="ISO"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> FilteringBoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def log_request_start(
    logger: FilteringBoundLogger,
    request_id: str,
    endpoint: str,
    method: str,
    **kwargs: Any,
) -> None:
    """Log the start of a request."""
    logger.info(
        "Request started",
        request_id=request_id,
        endpoint=endpoint,
        method=method,
        **kwargs,
    )


def log_request_end(
    logger: FilteringBoundLogger,
    request_id: str,
    status_code: int,
    duration_ms: float,
    **kwargs: Any,
) -> None:
    """Log the end of a request."""
    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=status_code,
        duration_ms=duration_ms,
        **kwargs,
    )


def log_repair_start(
    logger: FilteringBoundLogger,
    repair_name: str,
    label: str,
    **kwargs: Any,
) -> None:
    """Log that a repair action is about to run."""
    logger.info(
        "Triggering repair",
        repair=repair_name,
        label=label,
        **kwargs,
    )


def log_repair_complete(
    logger: FilteringBoundLogger,
    repair_name: str,
    label: str,
    result: dict[str, Any],
    **kwargs: Any,
) -> None:
    """Log the successful completion of a repair action."""
    logger.info(
        "Repair completed",
        repair=repair_name,
        label=label,
        result=result,
        **kwargs,
    )
