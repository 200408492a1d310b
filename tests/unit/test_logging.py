"""
Unit tests for logging utilities.
"""

import logging

import pytest

from mdb_odm.observability.logging import (get_logger, get_logging_context,
                                           log_operation, query_context,
                                           timed_operation)

LOGGER_NAME = "tests.odm"


@pytest.mark.unit
class TestQueryContext:
    """Test query context handling."""

    def test_empty_context(self):
        context = get_logging_context()

        assert list(context) == ["timestamp"]

    def test_query_context(self):
        with query_context(model="Book", collection="books"):
            context = get_logging_context()

        assert context["model"] == "Book"
        assert context["collection"] == "books"
        assert "model" not in get_logging_context()

    def test_nested_context_is_restored(self):
        with query_context(model="Book"):
            with query_context(operation="find"):
                inner = get_logging_context()
            outer = get_logging_context()

        assert inner["model"] == "Book"
        assert inner["operation"] == "find"
        assert "operation" not in outer

    def test_context_is_restored_after_error(self):
        with pytest.raises(ValueError):
            with query_context(model="Book"):
                raise ValueError("boom")

        assert "model" not in get_logging_context()

    def test_contextual_logger_adds_context(self, caplog):
        logger = get_logger(LOGGER_NAME)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            with query_context(model="Book"):
                logger.info("hello", extra={"collection": "books"})

        record = caplog.records[-1]
        assert record.model == "Book"
        assert record.collection == "books"


@pytest.mark.unit
class TestOperationLogging:
    """Test log_operation and timed_operation."""

    def test_log_operation(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            log_operation(logger, "find", duration_ms=1.234, collection="books")

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.getMessage() == "Operation: find (duration: 1.23ms)"
        assert record.operation == "find"
        assert record.success is True
        assert record.duration_ms == 1.23
        assert record.collection == "books"

    def test_timed_operation_success(self, caplog):
        logger = get_logger(LOGGER_NAME)

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            with timed_operation(logger, "count_documents", collection="books"):
                assert get_logging_context()["collection"] == "books"

        record = caplog.records[-1]
        assert record.operation == "count_documents"
        assert record.collection == "books"
        assert record.success is True
        assert record.duration_ms >= 0
        assert "collection" not in get_logging_context()

    def test_timed_operation_failure(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            with pytest.raises(KeyError):
                with timed_operation(logger, "insert_one", collection="books"):
                    raise KeyError("boom")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.success is False
        assert record.collection == "books"
        assert record.getMessage().startswith("Operation failed: insert_one")
