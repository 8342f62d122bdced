"""Error handling utilities for the masking engine."""

from enum import Enum
from typing import Any, Dict, Optional

from ..logging.logging_config import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for handling decisions."""

    # Recoverable: the caller may degrade gracefully and continue
    TIMEOUT = "timeout"            # Bounded pattern match exceeded its limit
    CONVERSION = "conversion"      # Value <-> text round trip failed

    # Non-recoverable: fix the configuration or the input
    CONFIGURATION = "configuration"  # Invalid construction parameters
    VALIDATION = "validation"        # Checksum / format validation rejected input

    FATAL = "fatal"  # Unclassified errors


class MaskingError(Exception):
    """Base class for masking errors with categorization."""

    default_category = ErrorCategory.FATAL

    def __init__(
        self,
        message: str,
        category: Optional[ErrorCategory] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.original_error = original_error
        self.context = context or {}

    def __str__(self):
        error_str = f"{self.category.value}: {self.message}"
        if self.context:
            error_str += f" (context: {self.context})"
        if self.original_error:
            error_str += f" (original error: {str(self.original_error)})"
        return error_str


class ConfigurationError(MaskingError, ValueError):
    """Raised eagerly when a rule is constructed with invalid parameters."""
    default_category = ErrorCategory.CONFIGURATION


class FormatValidationError(MaskingError, ValueError):
    """Raised when a rule configured to validate its input rejects it."""
    default_category = ErrorCategory.VALIDATION


class PatternTimeoutError(MaskingError, TimeoutError):
    """Raised when an explicit single-pattern match exceeds its time bound."""
    default_category = ErrorCategory.TIMEOUT


class ConversionError(MaskingError):
    """Raised when a value cannot be converted to or from text."""
    default_category = ErrorCategory.CONVERSION


# Error classification mappings for foreign exceptions
ERROR_CLASSIFICATIONS = {
    TimeoutError: ErrorCategory.TIMEOUT,
    TypeError: ErrorCategory.CONVERSION,
    ValueError: ErrorCategory.VALIDATION,
}


def classify_error(error: Exception) -> ErrorCategory:
    """Classify an error into a category.

    Args:
        error: The error to classify

    Returns:
        ErrorCategory: The error category
    """
    if isinstance(error, MaskingError):
        return error.category

    for error_type, category in ERROR_CLASSIFICATIONS.items():
        if isinstance(error, error_type):
            return category

    return ErrorCategory.FATAL


def wrap_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None
) -> MaskingError:
    """Wrap an error with proper categorization and context.

    Args:
        error: The original error
        context: Optional context information

    Returns:
        MaskingError: The wrapped error
    """
    if isinstance(error, MaskingError) and not context:
        return error
    return MaskingError(
        message=str(error) if not isinstance(error, MaskingError) else error.message,
        category=classify_error(error),
        original_error=error,
        context=context
    )


def is_recoverable(error: Exception) -> bool:
    """Check if an error allows masking to degrade gracefully.

    Args:
        error: The error to check

    Returns:
        bool: True if the error is recoverable
    """
    return classify_error(error) in {
        ErrorCategory.TIMEOUT,
        ErrorCategory.CONVERSION
    }


def error_message(error: Exception) -> str:
    """Return the human-readable message of an error without category decoration."""
    if isinstance(error, MaskingError):
        return error.message
    return str(error)
