"""
Observability components.

Provides structured logging with per-query context.
"""

from .logging import (ContextualLoggerAdapter, get_logger,
                      get_logging_context, log_operation, query_context,
                      timed_operation)

__all__ = [
    "query_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
    "timed_operation",
]
