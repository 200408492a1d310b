"""
Logging utilities for MDB_ODM.

Provides structured logging with per-query context, so every record emitted
while a store round trip is in flight carries the model and collection it
belongs to.
"""

import contextvars
import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

# Context variable for query context (model, collection, operation)
_query_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "query_context", default=None
)


@contextmanager
def query_context(**kwargs: Any) -> Iterator[dict[str, Any]]:
    """
    Attach `kwargs` to every log record emitted inside the block.

    Nested blocks extend the outer context; the outer context is restored on
    exit.
    """
    context = {**(_query_context.get() or {}), **kwargs}
    token = _query_context.set(context)
    try:
        yield context
    finally:
        _query_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context (timestamp and query context).

    Returns:
        Dictionary with context information
    """
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    current = _query_context.get()
    if current:
        context.update(current)

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that automatically adds context to log records.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()

        extra = kwargs.get("extra", {})
        if extra:
            context.update(extra)

        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger that automatically adds the query context.

    Args:
        name: Logger name (typically __name__)
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.DEBUG,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log a store operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (find, count, delete_many, ...)
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context (collection, model, ...)
    """
    log_context = get_logging_context()
    log_context.update(
        {
            "operation": operation,
            "success": success,
        }
    )

    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)

    if context:
        log_context.update(context)

    message = f"Operation: {operation}"
    if not success:
        message = f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)


@contextmanager
def timed_operation(
    logger: logging.Logger | logging.LoggerAdapter, operation: str, **context: Any
) -> Iterator[None]:
    """
    Time the enclosed block and log it through `log_operation`.

    `context` is installed as query context for the duration of the block.
    Failures are logged at WARNING and re-raised unchanged.
    """
    with query_context(**context):
        start = time.perf_counter()
        try:
            yield
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            log_operation(
                logger, operation, level=logging.WARNING, success=False,
                duration_ms=duration_ms,
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        log_operation(logger, operation, duration_ms=duration_ms)
