"""
Error handling utilities for the form builder editor.
Logs failures and shows user-friendly messages so one failed action does not
take the whole editor down.
"""

import streamlit as st
import logging
from typing import Any, Callable

from form_builder.store_exceptions import (
    FormBuilderError,
    InvalidIndexError,
    SeedDataError,
    UnknownFieldTypeError,
    UnknownOperationError,
)

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    STORE = "store"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorHandler:
    """Error handling for editor actions."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
    ) -> None:
        """
        Handle errors with user-friendly messages.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
        """
        logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        st.error(ErrorHandler.get_user_friendly_message(error, error_type))

        if isinstance(error, FormBuilderError) and error.recovery_suggestions:
            for suggestion in error.recovery_suggestions:
                st.caption(f"• {suggestion}")

    @staticmethod
    def get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Generate user-friendly error messages based on error type."""
        error_messages = {
            ErrorType.STORE: {
                InvalidIndexError: "📋 That field or page is no longer at this position. Please try again.",
                UnknownOperationError: "📋 The editor requested an action that is not supported.",
                UnknownFieldTypeError: "📋 That field type is not available in the catalog.",
                "default": "📋 The form could not be updated. Please try again."
            },
            ErrorType.CONFIGURATION: {
                SeedDataError: "⚙️ The starting form in config.yaml is invalid. Please check the form seed section.",
                "default": "⚙️ Configuration error. Please check config.yaml."
            },
            ErrorType.SYSTEM: {
                "default": "💻 System error occurred. Please try again or reload the editor."
            }
        }

        error_type_messages = error_messages.get(error_type, error_messages[ErrorType.SYSTEM])

        for exception_type, message in error_type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return error_type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def with_error_handling(
        func: Callable[[], Any],
        context: str,
        error_type: str = ErrorType.STORE,
        default_return: Any = None
    ) -> Any:
        """
        Run an operation and route any exception through handle_error.

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type)
            return default_return
