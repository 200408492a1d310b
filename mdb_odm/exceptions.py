"""
Custom exceptions for MDB_ODM.

These exceptions provide more specific error types while maintaining
backward compatibility with RuntimeError. Driver errors raised by
pymongo/motor are never wrapped and reach the caller unmodified.
"""

from typing import Any, Dict, Optional


class OdmError(RuntimeError):
    """
    Base exception for MDB_ODM errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection,
                 model, field, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(OdmError):
    """
    Raised when configuration is invalid.

    This is raised for an unknown adapter name or a setting that cannot be
    parsed. It is never retried.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class AggregateTypeError(OdmError, TypeError):
    """
    Raised when a numeric aggregate meets a non-numeric value.

    Attributes:
        field: Name of the plucked field
    """

    def __init__(self, field: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            f"All values returned for {field} are not numbers. Please check your data.",
            context=context,
        )
        self.field = field


class PersistenceError(OdmError):
    """
    Raised when a document that was just written cannot be read back.

    Attributes:
        collection_name: Collection the document was written to
        document_id: Identifier returned by the insert
    """

    def __init__(
        self,
        message: str,
        collection_name: Optional[str] = None,
        document_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if collection_name:
            context["collection"] = collection_name
        if document_id is not None:
            context["id"] = document_id
        super().__init__(message, context=context)
        self.collection_name = collection_name
        self.document_id = document_id


class InvalidOperatorError(OdmError, ValueError):
    """Raised when `where(key, operator, value)` gets an unknown operator."""

    def __init__(self, operator: Any, valid_operators: Optional[list] = None) -> None:
        message = f"{operator!r} is not a valid comparison operator."
        if valid_operators:
            message += " Must be one of " + ", ".join(f"'{op}'" for op in valid_operators) + "."
        super().__init__(message)
        self.operator = operator
