"""
Error definitions for the execution client
"""

from .exceptions import (
    ErrorCode,
    ExecutionError,
    RETRYABLE_CODES,
    classify_error,
    is_network_failure,
)

__all__ = [
    "ErrorCode",
    "ExecutionError",
    "RETRYABLE_CODES",
    "classify_error",
    "is_network_failure",
]
