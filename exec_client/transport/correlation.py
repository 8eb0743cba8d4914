"""
Correlation IDs for request tracing

Every exchange with the peer runs under a short id so the request and
response log lines of one round trip can be matched up.
"""

import uuid
import contextvars
from typing import Optional

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'exec_client_correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


class CorrelationContext:
    """
    Context manager scoping one correlation ID.

    Usage:
        with CorrelationContext("exec") as cid:
            logger.debug(f"[{cid}] -> request")
    """

    def __init__(self, prefix: Optional[str] = None):
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None
