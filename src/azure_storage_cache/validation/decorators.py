"""
Azure Storage Cache - Validation Decorators

Provides decorators for applying Pydantic validation to MCP tools.

- validate_input decorator for automatic input validation
- Structured error responses with ErrorCode for validation and cache failures
"""

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import (
    ErrorCode,
    StorageCacheError,
    extract_error_code,
    is_retryable_error,
    make_error_response,
)

logger = logging.getLogger(__name__)


def _validation_error_response(func_name: str, error: ValidationError, kwargs: dict[str, Any]) -> dict[str, Any]:
    validation_errors = []
    for err in error.errors():
        field_path = " -> ".join(str(loc) for loc in err["loc"])
        validation_errors.append(
            {
                "field": field_path,
                "message": err["msg"],
                "type": err["type"],
            }
        )

    logger.warning(
        f"Input validation failed for {func_name}",
        extra={
            "function": func_name,
            "validation_errors": validation_errors,
            "input_keys": sorted(kwargs),
        },
    )

    return make_error_response(
        error_code=ErrorCode.INVALID_INPUT,
        message="Input validation failed",
        context={
            "validation_errors": validation_errors,
            "function": func_name,
        },
    )


def _failure_response(func_name: str, error: Exception) -> dict[str, Any]:
    error_code = extract_error_code(error)

    if isinstance(error, StorageCacheError):
        logger.info(
            f"{func_name} failed: {error.message}",
            extra={"function": func_name, "error_code": error_code.value},
        )
        return make_error_response(error_code, error.message, {**error.details, "function": func_name})

    if error_code == ErrorCode.TRANSPORT_ERROR:
        logger.warning(
            f"Storage service error in {func_name}: {error}",
            extra={"function": func_name, "error_type": type(error).__name__},
        )
        return make_error_response(
            error_code,
            f"Storage service error: {error}",
            {"function": func_name, "retryable": is_retryable_error(error)},
        )

    logger.error(
        f"Unexpected error in {func_name}: {error}",
        extra={
            "function": func_name,
            "error": str(error),
            "error_type": type(error).__name__,
        },
        exc_info=True,
    )
    return make_error_response(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=f"Internal error: {error}",
        context={"function": func_name},
    )


def validate_input(schema: type[BaseModel]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to validate tool inputs using Pydantic schema.

    Args:
        schema: Pydantic model class for input validation

    Returns:
        Decorated function with automatic validation

    Example:
        >>> @validate_input(CacheGetInput)
        ... async def cache_get(key: str):
        ...     # Function receives validated inputs
        ...     pass

    Error Response:
        {
            "success": False,
            "error_code": "INVALID_INPUT",
            "message": "Input validation failed",
            "details": {
                "validation_errors": [
                    {
                        "field": "key",
                        "message": "String should have at least 1 character",
                        "type": "string_too_short"
                    }
                ]
            }
        }

    Cache errors raised by the tool body (invalid argument, out of range,
    invariant violation, storage service failures) are turned into the same
    structured response with the matching error code.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                validated = schema(**kwargs)
            except ValidationError as e:
                return _validation_error_response(func.__name__, e, kwargs)

            try:
                return await func(*args, **validated.model_dump(exclude_unset=False))
            except Exception as e:
                return _failure_response(func.__name__, e)

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                validated = schema(**kwargs)
            except ValidationError as e:
                return _validation_error_response(func.__name__, e, kwargs)

            try:
                return func(*args, **validated.model_dump(exclude_unset=False))
            except Exception as e:
                return _failure_response(func.__name__, e)

        # Return appropriate wrapper based on function type
        if inspect.iscoroutinefunction(func):
            return async_wrapper
        else:
            return sync_wrapper

    return decorator
