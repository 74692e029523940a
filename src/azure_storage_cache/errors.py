"""
Azure Storage Cache - Core Error Types

Defines the exception hierarchy for the cache runtime.
All cache errors inherit from StorageCacheError for consistent error handling.

Failures raised by the Azure SDK itself (network, auth, throttling) are not
wrapped: they propagate unchanged as ``azure.core.exceptions.AzureError``
subclasses. Cancellation propagates as ``asyncio.CancelledError``.
"""

import asyncio
from enum import Enum
from typing import Any

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error responses.

    Used by the MCP tool surface and by callers that need to branch on the
    failure category without matching exception types.
    """

    # Caller errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    OUT_OF_RANGE = "OUT_OF_RANGE"

    # Lookup errors
    NOT_FOUND = "NOT_FOUND"

    # Data errors
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # Storage service errors
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    CANCELLED = "CANCELLED"

    # Setup errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class StorageCacheError(Exception):
    """Base exception for all cache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(StorageCacheError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class InvalidArgumentError(StorageCacheError):
    """Raised when a key, payload or options argument is missing or malformed."""

    def __init__(self, argument: str, message: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        error_details.setdefault("argument", argument)
        super().__init__(message or f"Invalid argument: {argument}", error_details, status_code=400)
        self.argument = argument


class OutOfRangeError(StorageCacheError):
    """Raised when a supplied absolute expiration is not strictly in the future."""

    def __init__(self, argument: str, value: Any, message: str):
        super().__init__(message, {"argument": argument, "value": str(value)}, status_code=400)
        self.argument = argument
        self.value = value


class CacheNotFoundError(StorageCacheError):
    """Raised when no live (non-expired) entry exists for a key."""

    def __init__(self, key: str, details: dict[str, Any] | None = None):
        error_details = details or {}
        error_details.setdefault("key", key)
        super().__init__(f"No object found for key: {key}", error_details, status_code=404)
        self.key = key


class InvariantViolationError(StorageCacheError):
    """Raised when stored data breaks an invariant (duplicate rows, corrupt snapshot)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


def make_error_response(
    error_code: ErrorCode,
    message: str,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized error response for MCP tools.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        context: Additional context/details

    Returns:
        Standardized error response dictionary

    Example:
        >>> make_error_response(
        ...     ErrorCode.INVALID_ARGUMENT,
        ...     "Invalid argument: key",
        ...     {"argument": "key"}
        ... )
        {
            "success": False,
            "error_code": "INVALID_ARGUMENT",
            "message": "Invalid argument: key",
            "details": {"argument": "key"}
        }
    """
    return {
        "success": False,
        "error_code": error_code.value,
        "message": message,
        "details": context or {},
    }


def is_transport_error(error: BaseException) -> bool:
    """Check whether an error came from the underlying storage client."""
    return isinstance(error, AzureError)


def is_retryable_error(error: BaseException) -> bool:
    """
    Check if an error is transient and may be retried by the caller.

    The cache layer never retries on its own; this only classifies.

    Args:
        error: Exception to check

    Returns:
        True if error is retryable (transient)
    """
    # Caller and data errors never succeed on retry
    if isinstance(error, StorageCacheError):
        return False

    # Connection-level failures
    if isinstance(error, (ServiceRequestError, ServiceResponseError)):
        return True

    # Throttling, timeouts and server-side failures
    if isinstance(error, HttpResponseError):
        status = error.status_code or 0
        return status in (408, 429) or status >= 500

    return False


def extract_error_code(error: BaseException) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, asyncio.CancelledError):
        return ErrorCode.CANCELLED

    if isinstance(error, InvalidArgumentError):
        return ErrorCode.INVALID_ARGUMENT

    if isinstance(error, OutOfRangeError):
        return ErrorCode.OUT_OF_RANGE

    if isinstance(error, CacheNotFoundError):
        return ErrorCode.NOT_FOUND

    if isinstance(error, InvariantViolationError):
        return ErrorCode.INVARIANT_VIOLATION

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    if is_transport_error(error):
        return ErrorCode.TRANSPORT_ERROR

    return ErrorCode.INTERNAL_ERROR
