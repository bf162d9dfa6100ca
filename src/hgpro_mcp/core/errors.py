"""
Centralized Error Handling for HG-Pro MCP.

This module provides a custom exception hierarchy and error response builders
for consistent error handling across the WRB / Hidden Gap tool surface.

Key Features:
- Custom exception hierarchy for different error types
- User-friendly error messages for LLM consumers
- Structured error responses matching the tool output schema

The analysis engine itself never raises for short input or degenerate gaps;
these exceptions belong to the data and tool layers.
"""

from __future__ import annotations
from typing import Dict, Any


# =============================================================================
# Exception Hierarchy
# =============================================================================

class HGProError(Exception):
    """Base exception for all HG-Pro errors."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class DataError(HGProError):
    """Errors related to candle parsing or validation."""
    pass


class ValidationError(HGProError):
    """Errors related to tool input validation."""
    pass


class InsufficientDataError(DataError):
    """Not enough candles for the requested analysis."""

    def __init__(self, required: int, available: int, message: str | None = None):
        msg = message or f"Insufficient data ({available} candles). Need at least {required}."
        super().__init__(msg, {"required": required, "available": available})
        self.required = required
        self.available = available


# =============================================================================
# Error Response Builder
# =============================================================================

def build_error_response(error: Exception, tool_name: str) -> Dict[str, Any]:
    """
    Build a structured error response for a tool call.

    Args:
        error: The exception that occurred
        tool_name: Name of the tool that encountered the error

    Returns:
        Dictionary with:
        - tool: Tool name
        - error: User-friendly error explanation
        - error_type: Exception class name
        - is_error: True

    Example:
        >>> try:
        ...     raise InsufficientDataError(required=10, available=3)
        ... except Exception as e:
        ...     response = build_error_response(e, "wrb_scoring")
        >>> response["is_error"]
        True
    """
    if isinstance(error, InsufficientDataError):
        message = error.message
    elif isinstance(error, ValidationError):
        message = (
            f"Invalid input parameters: {error.message}. "
            f"Please check your request and try again."
        )
    elif isinstance(error, DataError):
        message = (
            f"Data error occurred: {error.message}. "
            f"The candle data may be malformed."
        )
    elif isinstance(error, HGProError):
        message = f"Analysis error: {error.message}"
    else:
        # Generic error handling for unexpected exceptions
        message = (
            f"An unexpected error occurred during analysis. "
            f"Error type: {type(error).__name__}."
        )

    return {
        "tool": tool_name,
        "error": message,
        "error_type": type(error).__name__,
        "is_error": True,
    }
