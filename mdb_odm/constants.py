"""
Constants for MDB_ODM.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_ADAPTER: Final[str] = "default"
"""Adapter used when DB_ADAPTER is not set."""

MOCK_ADAPTER: Final[str] = "mock"
"""In-memory adapter for tests."""

DEFAULT_DB_URL: Final[str] = "mongodb://127.0.0.1:27017/"
"""Connection URL used when DB_URL is not set."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 10
"""Default maximum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

FALLBACK_DATABASE_NAME: Final[str] = "test"
"""Database opened when neither DB_DATABASE nor the URL names one."""

# ============================================================================
# DOCUMENT CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "id"
"""Public identifier attribute on models."""

INTERNAL_ID_FIELD: Final[str] = "_id"
"""Identifier field inside stored documents."""

CREATED_AT_FIELD: Final[str] = "created_at"
UPDATED_AT_FIELD: Final[str] = "updated_at"

OPERATOR_PREFIX: Final[str] = "$"
"""Keys starting with this character are query operators."""

# ============================================================================
# QUERY CONSTANTS
# ============================================================================

COMPARISON_OPERATORS: Final[dict] = {
    "=": None,
    "!=": "$ne",
    "<>": "$ne",
    ">": "$gt",
    ">=": "$gte",
    "<": "$lt",
    "<=": "$lte",
}
"""Comparison operators accepted by where(); `=` is plain equality."""

ASCENDING: Final[int] = 1
DESCENDING: Final[int] = -1
