"""
Pytest configuration and shared fixtures for MDB_ODM tests.

This module provides:
- Environment fixtures selecting the in-memory adapter
- Mock motor collection/cursor fixtures for driver-level unit tests
- A fresh ConnectionHandler per test for integration tests
"""

import uuid
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

import mdb_odm.query_builder as query_builder_module
from mdb_odm.database.connection import ConnectionHandler

DB_ENV_VARS = (
    "DB_ADAPTER",
    "DB_URL",
    "DB_DATABASE",
    "DB_MAX_POOL_SIZE",
    "DB_POOL_SIZE",
    "DB_SERVER_SELECTION_TIMEOUT_MS",
)


# ============================================================================
# ENVIRONMENT FIXTURES
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every DB_* setting so defaults apply."""
    for name in DB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env(clean_env: pytest.MonkeyPatch) -> str:
    """Select the mock adapter and a database unique to this test."""
    database = f"test-{uuid.uuid4().hex}"
    clean_env.setenv("DB_ADAPTER", "mock")
    clean_env.setenv("DB_DATABASE", database)
    return database


# ============================================================================
# MOCK MOTOR FIXTURES
# ============================================================================


@pytest.fixture
def make_cursor() -> Callable[[List[Dict[str, Any]]], MagicMock]:
    """Factory for chainable motor-style cursors returning `documents`."""

    def factory(documents: List[Dict[str, Any]]) -> MagicMock:
        cursor = MagicMock()
        cursor.sort = MagicMock(return_value=cursor)
        cursor.skip = MagicMock(return_value=cursor)
        cursor.limit = MagicMock(return_value=cursor)
        cursor.to_list = AsyncMock(return_value=documents)
        return cursor

    return factory


@pytest.fixture
def mock_collection(make_cursor) -> MagicMock:
    """Create a mock motor collection."""
    collection = MagicMock()
    collection.find = MagicMock(return_value=make_cursor([]))
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="test_id"))
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.count_documents = AsyncMock(return_value=0)
    collection.aggregate = MagicMock(return_value=make_cursor([]))
    return collection


@pytest.fixture
def mock_database(mock_collection: MagicMock) -> MagicMock:
    """Create a mock database handing out `mock_collection` for every name."""
    database = MagicMock()
    database.__getitem__.return_value = mock_collection
    return database


@pytest.fixture
def mock_connection(
    monkeypatch: pytest.MonkeyPatch, mock_database: MagicMock
) -> MagicMock:
    """Route every QueryBuilder to `mock_database`."""
    handler = MagicMock(spec=ConnectionHandler)
    handler.get_connection = AsyncMock(return_value=mock_database)
    monkeypatch.setattr(query_builder_module, "connection_handler", handler)
    return handler


# ============================================================================
# IN-MEMORY STORE FIXTURES
# ============================================================================


@pytest.fixture
def memory_connection(
    mock_env: str, monkeypatch: pytest.MonkeyPatch
) -> ConnectionHandler:
    """A fresh ConnectionHandler on the mock adapter, used by every builder."""
    handler = ConnectionHandler()
    monkeypatch.setattr(query_builder_module, "connection_handler", handler)
    return handler


def book_document(**overrides: Any) -> Dict[str, Any]:
    """A stored book document as the driver would return it."""
    document = {
        "_id": "5f0aeaeacff57e3ec676b340",
        "author_id": "author-1",
        "created_at": 1594552340652,
        "is_available": True,
        "isbn": "9780486284736",
        "pages": 279,
        "title": "Pride and Prejudice",
        "updated_at": None,
    }
    document.update(overrides)
    return document


@pytest.fixture
def make_book_document() -> Callable[..., Dict[str, Any]]:
    return book_document


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests against mocked drivers")
    config.addinivalue_line("markers", "integration: tests against the in-memory adapter")
