"""
Custom exception classes for the schema store.

Invariant-protecting and not-found conditions are silent no-ops in the store,
so these exceptions only cover programmer errors and bad input data.
"""

import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class FormBuilderError(Exception):
    """
    Base exception for schema store errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class InvalidIndexError(FormBuilderError, IndexError):
    """
    Raised when a position-addressed operation receives an index outside the list.
    """

    def __init__(self, collection: str, index: Any, length: int,
                 message: Optional[str] = None):
        self.collection = collection
        self.index = index
        self.length = length

        if message is None:
            message = f"{collection} index {index!r} out of range (length {length})"

        context = {
            'collection': collection,
            'index': index,
            'length': length
        }

        recovery_suggestions = [
            f"Pass an index between 0 and {max(length - 1, 0)}",
            "Re-read the current snapshot before issuing position-based operations"
        ]

        super().__init__(message, context, recovery_suggestions)


class UnknownOperationError(FormBuilderError):
    """
    Raised when an intent names an operation the store does not provide.
    """

    def __init__(self, operation: str, available: Optional[List[str]] = None):
        self.operation = operation
        self.available = sorted(available or [])

        message = f"Unknown schema store operation: {operation}"

        context = {
            'operation': operation,
            'available_operations': self.available
        }

        recovery_suggestions = [
            "Check the operation name for typos",
            "Use either the camelCase or the snake_case operation name"
        ]

        super().__init__(message, context, recovery_suggestions)


class UnknownFieldTypeError(FormBuilderError, KeyError):
    """
    Raised when a field type is not present in the category catalog.
    """

    def __init__(self, field_type: Any):
        self.field_type = field_type

        message = f"Field type not found in catalog: {field_type}"

        context = {'field_type': str(field_type)}

        recovery_suggestions = [
            "Pick a field type from the category catalog",
            "Pass a CategoryEntry with an explicit label"
        ]

        super().__init__(message, context, recovery_suggestions)

    def __str__(self) -> str:
        return self.message


class SeedDataError(FormBuilderError):
    """
    Raised when initial form data cannot be turned into a consistent snapshot.
    """

    def __init__(self, original_error: Exception, message: Optional[str] = None):
        self.original_error = original_error

        if message is None:
            message = f"Invalid seed form data: {str(original_error)}"

        context = {
            'original_error_type': type(original_error).__name__,
            'original_error_message': str(original_error)
        }

        recovery_suggestions = [
            "Ensure the seed contains at least one page",
            "Ensure page ids and field ids are unique integers",
            "Check field types against the category catalog"
        ]

        super().__init__(message, context, recovery_suggestions)
