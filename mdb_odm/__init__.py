"""
MDB_ODM - ActiveRecord-style object-document mapper for MongoDB.

Models declare plain attributes; the mapper provides class-level query
construction, CRUD persistence, aggregation helpers and simple relationship
traversal on top of a shared, lazily created motor client.
"""

from .base_model import BaseModel
from .config import DatabaseConfig
from .database import ConnectionHandler, connection_handler, sanitize
from .descriptor import ModelDescriptor, describe
from .exceptions import (AggregateTypeError, ConfigurationError,
                         InvalidOperatorError, OdmError, PersistenceError)
from .query_builder import Query, QueryBuilder

__version__ = "0.1.0"

__all__ = [
    # Models
    "BaseModel",
    "QueryBuilder",
    "Query",
    "ModelDescriptor",
    "describe",
    # Database
    "ConnectionHandler",
    "connection_handler",
    "DatabaseConfig",
    "sanitize",
    # Errors
    "OdmError",
    "ConfigurationError",
    "AggregateTypeError",
    "PersistenceError",
    "InvalidOperatorError",
]
