"""
Database layer.

Connection pooling, adapter selection and input sanitization.
"""

from .connection import ADAPTERS, ConnectionHandler, connection_handler
from .sanitize import sanitize

__all__ = [
    "ADAPTERS",
    "ConnectionHandler",
    "connection_handler",
    "sanitize",
]
