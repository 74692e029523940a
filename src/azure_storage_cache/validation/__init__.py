"""
Azure Storage Cache - Input Validation Module

Provides Pydantic-based validation for all MCP tool inputs.
"""

from .decorators import validate_input
from .tool_schemas import (
    CacheGetInput,
    CacheRefreshInput,
    CacheRemoveInput,
    CacheSetInput,
    CheckStatusInput,
)

__all__ = [
    # Decorator
    "validate_input",
    # Tool input schemas
    "CheckStatusInput",
    "CacheGetInput",
    "CacheSetInput",
    "CacheRefreshInput",
    "CacheRemoveInput",
]
