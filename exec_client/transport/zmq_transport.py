"""
ZeroMQ transport

DEALER socket speaking to the engine's ROUTER. Each request is sent as
[empty delimiter, payload] and the reply arrives the same way.
Serves tcp:// and ipc:// addresses.
"""

from typing import Any, Optional

import zmq
import zmq.asyncio

from ..config import TransportConfig
from ..errors import ExecutionError
from .base import Transport
from .codec import Codec


class ZmqTransport(Transport):
    """
    Usage:
        transport = ZmqTransport(TransportConfig(address="ipc:///tmp/tx-executor.ipc"))
        await transport.connect()
        reply = await transport.request({"type": "PING"})
    """

    name = "ZMQ"

    def __init__(
        self,
        config: TransportConfig,
        codec: Optional[Codec] = None,
        context: Optional[zmq.asyncio.Context] = None,
    ):
        super().__init__(config, codec)
        self._context = context
        self._socket: Optional[zmq.asyncio.Socket] = None

    def _get_context(self) -> zmq.asyncio.Context:
        if self._context is None:
            self._context = zmq.asyncio.Context.instance()
        return self._context

    async def _open(self) -> None:
        socket = self._get_context().socket(zmq.DEALER)
        # Drop pending messages on close
        socket.setsockopt(zmq.LINGER, 0)
        try:
            socket.connect(self.address)
        except zmq.ZMQError:
            socket.close(linger=0)
            raise
        self._socket = socket

    async def _close(self) -> None:
        socket = self._socket
        self._socket = None
        if socket is not None and not socket.closed:
            socket.close(linger=0)

    async def _exchange(self, data: bytes, message: Any) -> bytes:
        if self._socket is None:
            raise ConnectionError("ZMQ socket is not open")

        try:
            await self._socket.send_multipart([b"", data])
            frames = await self._socket.recv_multipart()
        except zmq.ZMQError as e:
            raise ExecutionError.network(self.name, e) from e
        # DEALER keeps the empty delimiter frame
        return frames[-1]
