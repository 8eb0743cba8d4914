"""
Exception definitions for the execution client

Every failure that leaves the client is an ExecutionError carrying one
ErrorCode from a closed set.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """
    Unified error codes for execution requests

    Only NETWORK_ERROR and TIMEOUT are transient. Every other code
    requires the caller to change something before trying again.
    """
    # Transient (retryable)
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    EXECUTION_FAILED = "EXECUTION_FAILED"

    # Peer resource errors
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Transport errors
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_CODES = frozenset({ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT})

# Substring markers, checked in this order by classify_error()
TIMEOUT_MARKERS = ("timeout", "timed out")
NETWORK_MARKERS = (
    "network",
    "econnrefused",
    "enotfound",
    "connection refused",
    "name or service not known",
    "nodename nor servname",
    "connection",
)
INVALID_MARKERS = ("invalid", "validation")


class ExecutionError(Exception):
    """
    Base exception for all execution client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        transport: Transport (or layer) in effect when the failure occurred,
            e.g. "ZMQ", "HTTP", "CLIENT", "BUILDER"
        original_error: The underlying exception if any
        details: Additional error context
        timestamp: When the error was created (UTC)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        transport: str,
        original_error: Optional[BaseException] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.transport = transport
        self.original_error = original_error
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code.value}, "
            f"transport={self.transport!r}, message={self.message!r})"
        )

    def is_retryable(self) -> bool:
        """True only for transient categories (network, timeout)"""
        return self.code in RETRYABLE_CODES

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.is_retryable()

    def user_message(self) -> str:
        """Friendly message suitable for end users"""
        if self.code == ErrorCode.NETWORK_ERROR:
            return "Network error occurred. Please check your connection and try again."
        if self.code == ErrorCode.TIMEOUT:
            return "Request timed out. The execution engine might be busy. Please try again."
        if self.code == ErrorCode.INVALID_REQUEST:
            return "Invalid request parameters. Please check your inputs."
        if self.code == ErrorCode.EXECUTION_FAILED:
            return f"Transaction execution failed: {self.message}"
        if self.code == ErrorCode.RESOURCE_EXHAUSTED:
            return "Execution engine resources exhausted (nonce pool). Please wait a moment and try again."
        if self.code == ErrorCode.RESOURCE_NOT_FOUND:
            return "Requested resource not found. Please check the wallet or account address."
        if self.code == ErrorCode.SERIALIZATION_ERROR:
            return "Failed to serialize/deserialize message. This is likely a bug."
        if self.code == ErrorCode.CONNECTION_ERROR:
            return "Failed to connect to the execution engine. Please ensure it is running."
        return f"An unexpected error occurred: {self.message}"

    def to_dict(self) -> dict:
        """JSON-safe representation for structured logs"""
        original = None
        if self.original_error is not None:
            original = {
                "type": type(self.original_error).__name__,
                "message": str(self.original_error),
            }
        return {
            "name": self.__class__.__name__,
            "message": self.message,
            "code": self.code.value,
            "transport": self.transport,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
            "original_error": original,
        }

    # ========== Factories ==========

    @classmethod
    def from_unknown(cls, error: Any, transport: str = "UNKNOWN") -> "ExecutionError":
        return classify_error(error, transport)

    @classmethod
    def not_connected(cls, transport: str) -> "ExecutionError":
        return cls(
            f"Not connected to {transport} peer",
            ErrorCode.CONNECTION_ERROR,
            transport,
        )

    @classmethod
    def connection_failed(
        cls, transport: str, address: str, error: Optional[BaseException] = None
    ) -> "ExecutionError":
        reason = f": {error}" if error is not None else ""
        return cls(
            f"Failed to connect to {address}{reason}",
            ErrorCode.CONNECTION_ERROR,
            transport,
            original_error=error,
            details={"address": address},
        )

    @classmethod
    def max_reconnect_exceeded(cls, transport: str, max_attempts: int) -> "ExecutionError":
        return cls(
            f"Max reconnection attempts ({max_attempts}) exceeded",
            ErrorCode.CONNECTION_ERROR,
            transport,
            details={"max_reconnect_attempts": max_attempts},
        )

    @classmethod
    def timeout(
        cls, transport: str, timeout_seconds: float, error: Optional[BaseException] = None
    ) -> "ExecutionError":
        return cls(
            f"Request timeout after {timeout_seconds}s",
            ErrorCode.TIMEOUT,
            transport,
            original_error=error,
            details={"timeout_seconds": timeout_seconds},
        )

    @classmethod
    def network(cls, transport: str, error: BaseException) -> "ExecutionError":
        return cls(
            f"Network error: {error}",
            ErrorCode.NETWORK_ERROR,
            transport,
            original_error=error,
        )

    @classmethod
    def serialization(cls, transport: str, error: BaseException) -> "ExecutionError":
        return cls(
            f"Serialization error: {error}",
            ErrorCode.SERIALIZATION_ERROR,
            transport,
            original_error=error,
        )

    @classmethod
    def invalid_request(cls, message: str, transport: str = "CLIENT") -> "ExecutionError":
        return cls(message, ErrorCode.INVALID_REQUEST, transport)


def _matches(text: str, markers) -> bool:
    return any(marker in text for marker in markers)


def classify_error(error: Any, transport: str = "UNKNOWN") -> ExecutionError:
    """
    Classify an arbitrary caught value into the error taxonomy.

    An ExecutionError is returned unchanged (the transport hint is ignored).
    Exceptions are classified by substring markers in priority order:
    timeout, then network, then invalid request, else unknown.
    Any other value is stringified into an UNKNOWN_ERROR.

    Args:
        error: The caught value
        transport: Transport tag to attach to a new error

    Returns:
        ExecutionError
    """
    if isinstance(error, ExecutionError):
        return error

    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        text = message.lower()

        if _matches(text, TIMEOUT_MARKERS):
            code = ErrorCode.TIMEOUT
        elif _matches(text, NETWORK_MARKERS):
            code = ErrorCode.NETWORK_ERROR
        elif _matches(text, INVALID_MARKERS):
            code = ErrorCode.INVALID_REQUEST
        else:
            code = ErrorCode.UNKNOWN_ERROR

        return ExecutionError(message, code, transport, original_error=error)

    return ExecutionError(str(error), ErrorCode.UNKNOWN_ERROR, transport)


def is_network_failure(error: BaseException) -> bool:
    """True when a send/receive failure text carries a network marker"""
    return _matches(str(error).lower(), NETWORK_MARKERS)
