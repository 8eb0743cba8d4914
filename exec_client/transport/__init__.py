"""
Transports to the execution engine
"""

from .base import Transport, ConnectionState
from .codec import Codec, MsgpackCodec, JsonCodec, codec_for
from .correlation import CorrelationContext, generate_correlation_id, get_correlation_id
from .zmq_transport import ZmqTransport
from .http_transport import HttpTransport, error_code_for_status

__all__ = [
    "Transport",
    "ConnectionState",
    "Codec",
    "MsgpackCodec",
    "JsonCodec",
    "codec_for",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
    "ZmqTransport",
    "HttpTransport",
    "error_code_for_status",
]
