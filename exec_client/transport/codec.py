"""
Message codecs

A codec turns a message mapping into bytes for the wire and back.
Any object with encode(obj) -> bytes and decode(bytes) -> obj can be
injected into a transport.
"""

import base64
import json
from typing import Any, Protocol

import msgpack


class Codec(Protocol):
    content_type: str

    def encode(self, obj: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class MsgpackCodec:
    """Default codec; bytes values travel as msgpack bin"""
    content_type = "application/msgpack"

    def encode(self, obj: Any) -> bytes:
        return msgpack.packb(obj, use_bin_type=True)

    def decode(self, data: bytes) -> Any:
        return msgpack.unpackb(data, raw=False)


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonCodec:
    """UTF-8 JSON; bytes values are rendered as base64 strings"""
    content_type = "application/json"

    def encode(self, obj: Any) -> bytes:
        return json.dumps(obj, default=_json_default, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


def codec_for(name: str) -> Codec:
    """
    Codec by short name ("msgpack" or "json")

    Raises:
        ValueError: If the name is not a known codec
    """
    key = (name or "msgpack").lower()
    if key == "msgpack":
        return MsgpackCodec()
    if key == "json":
        return JsonCodec()
    raise ValueError(f"Unsupported content type: {name!r}")


def codec_for_content_type(header: str, fallback: Codec) -> Codec:
    """Pick a decoder from a response Content-Type header"""
    value = (header or "").lower()
    if "msgpack" in value:
        return MsgpackCodec()
    if "json" in value:
        return JsonCodec()
    return fallback
