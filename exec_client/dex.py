"""
DEX pool handle seam

DEX SDKs are consumed only through PoolHandle: given a Solana RPC
connection and a pool address, a factory returns a handle that builds a
swap transaction. The client never inspects that payload; it is forwarded
as a RawTransaction operation.
"""

from typing import Any, Awaitable, Protocol, Union, runtime_checkable

from solders.transaction import Transaction, VersionedTransaction

SwapPayload = Union[bytes, bytearray, memoryview, Transaction, VersionedTransaction]


@runtime_checkable
class PoolHandle(Protocol):
    def build_swap_instruction(self, params: Any) -> Union[SwapPayload, Awaitable[SwapPayload]]:
        """Build a serialized (or serializable) swap transaction"""
        ...


class PoolHandleFactory(Protocol):
    def __call__(self, connection: Any, pool_address: str) -> PoolHandle:
        ...


def to_transaction_bytes(payload: Any) -> bytes:
    """
    Normalize a swap payload to wire bytes

    Accepts raw bytes, solders Transaction / VersionedTransaction, or any
    object exposing serialize() -> bytes.

    Raises:
        TypeError: If the payload cannot be turned into bytes
    """
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, (Transaction, VersionedTransaction)):
        return bytes(payload)

    serialize = getattr(payload, "serialize", None)
    if callable(serialize):
        return bytes(serialize())

    raise TypeError(f"Unsupported transaction payload: {type(payload).__name__}")
