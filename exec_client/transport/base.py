"""
Transport base class

Implements the connection state machine shared by every transport:
- connect() coalescing (one in-flight attempt for any number of callers)
- one outstanding request per transport (request lock)
- request timeout
- serialization through an injected codec
- network failure detection and background reconnect

Subclasses provide the channel primitives _open(), _close() and _exchange().
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..config import TransportConfig
from ..errors import ErrorCode, ExecutionError, classify_error, is_network_failure
from .codec import Codec, codec_for
from .correlation import CorrelationContext

logger = logging.getLogger(__name__)

# Codes after which the channel is considered unusable
_CONNECTION_LOSS_CODES = frozenset({
    ErrorCode.NETWORK_ERROR,
    ErrorCode.TIMEOUT,
    ErrorCode.CONNECTION_ERROR,
})


class ConnectionState(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class Transport(ABC):
    """
    Request/reply channel to the execution engine

    State machine:
        DISCONNECTED -> connect() -> CONNECTING -> CONNECTED
        CONNECTED -> disconnect() or failure -> DISCONNECTED

    After a timeout, a cancelled request or a network failure the channel
    is closed: a late reply on a strict request/reply channel would break
    correlation. With auto_reconnect enabled a background reconnect is
    scheduled after timeouts and network failures; the next request after
    a cancellation reconnects lazily. The failed request itself is never
    retried.

    The first connect of a fresh transport does not count as a reconnect
    attempt.
    """

    name: str = "TRANSPORT"

    def __init__(self, config: TransportConfig, codec: Optional[Codec] = None):
        self.config = config
        self.address = config.address
        self.codec = codec or codec_for(config.content_type)
        self.logger = config.logger or logger

        self._state = ConnectionState.DISCONNECTED
        self._reconnect_attempts = 0
        self._connected_at: Optional[datetime] = None
        self._connect_task: Optional[asyncio.Future] = None
        self._connect_attempted = False
        self._reconnect_task: Optional[asyncio.Task] = None
        self._request_lock = asyncio.Lock()

    # ========== Channel primitives ==========

    @abstractmethod
    async def _open(self) -> None:
        """Open the underlying channel"""
        ...

    @abstractmethod
    async def _close(self) -> None:
        """Close the underlying channel (must tolerate an unopened channel)"""
        ...

    @abstractmethod
    async def _exchange(self, data: bytes, message: Any) -> bytes:
        """Send one encoded request and return the raw reply"""
        ...

    def _reply_codec(self) -> Codec:
        """Codec used to decode the last reply"""
        return self.codec

    # ========== State ==========

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected_at(self) -> Optional[datetime]:
        """UTC time of the last successful connect"""
        return self._connected_at

    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def get_reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def reset_reconnect_attempts(self) -> None:
        self._reconnect_attempts = 0

    @property
    def _exhausted(self) -> bool:
        return self._reconnect_attempts >= self.config.max_reconnect_attempts

    # ========== Connect / disconnect ==========

    async def connect(self) -> None:
        """
        Open the channel

        No-op when already connected. Concurrent callers share a single
        in-flight attempt.

        Raises:
            ExecutionError: CONNECTION_ERROR if the channel cannot be opened
        """
        if self._state == ConnectionState.CONNECTED:
            return

        task = self._connect_task
        if task is None:
            task = asyncio.ensure_future(self._do_connect())
            task.add_done_callback(self._on_connect_done)
            self._connect_task = task

        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # disconnect() cancelled the shared attempt, not this caller
            if task.cancelled():
                raise ExecutionError.not_connected(self.name) from None
            raise

    def _on_connect_done(self, task: asyncio.Future) -> None:
        if self._connect_task is task:
            self._connect_task = None
        if not task.cancelled():
            # Mark retrieved; awaiting callers re-raise it themselves
            task.exception()

    async def _do_connect(self) -> None:
        self._connect_attempted = True
        self._state = ConnectionState.CONNECTING
        self.logger.debug(f"Connecting to {self.name} peer: {self.address}")

        try:
            await self._open()
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            raise
        except ExecutionError as e:
            self._state = ConnectionState.DISCONNECTED
            await self._close_quietly()
            self.logger.error(f"Connection failed: {e.message}")
            raise
        except Exception as e:
            self._state = ConnectionState.DISCONNECTED
            await self._close_quietly()
            self.logger.error(f"Connection to {self.address} failed: {e}")
            raise ExecutionError.connection_failed(self.name, self.address, e) from e

        self._state = ConnectionState.CONNECTED
        self._reconnect_attempts = 0
        self._connected_at = datetime.now(timezone.utc)
        self.logger.info(f"Connected to {self.name} peer: {self.address}")

    async def disconnect(self) -> None:
        """
        Close the channel

        Idempotent. Cancels any pending reconnect. Errors while closing are
        logged, not raised.
        """
        self._cancel_reconnect()

        connect_task = self._connect_task
        if connect_task is not None and not connect_task.done():
            connect_task.cancel()

        was_connected = self._state != ConnectionState.DISCONNECTED
        self._state = ConnectionState.DISCONNECTED
        await self._close_quietly()

        if was_connected:
            self.logger.info(f"Disconnected from {self.name} peer")

    async def _close_quietly(self) -> None:
        try:
            await self._close()
        except Exception as e:
            self.logger.warning(f"Error during {self.name} disconnect: {e}")

    # ========== Reconnect ==========

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _ensure_connected(self) -> None:
        if self._state == ConnectionState.CONNECTED:
            return

        if not self.config.auto_reconnect:
            raise ExecutionError.not_connected(self.name)

        if self._connect_task is not None:
            # Join the attempt already in flight
            await self.connect()
            return

        if not self._connect_attempted:
            # First connect of a fresh transport is not a reconnect
            await self.connect()
            return

        if self._exhausted:
            raise ExecutionError.max_reconnect_exceeded(self.name, self.config.max_reconnect_attempts)

        # Connect now instead of waiting for the scheduled attempt
        self._cancel_reconnect()
        self._reconnect_attempts += 1
        self.logger.info(
            f"Reconnecting to {self.name} peer "
            f"(attempt {self._reconnect_attempts}/{self.config.max_reconnect_attempts})"
        )
        await self.connect()

    async def _handle_connection_loss(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        await self._close_quietly()

        if not self.config.auto_reconnect:
            return
        if self._exhausted:
            self.logger.error(
                f"Max reconnection attempts ({self.config.max_reconnect_attempts}) exceeded"
            )
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return

        self.logger.warning(
            f"Connection lost. Reconnecting in {self.config.reconnect_delay_seconds}s "
            f"(attempt {self._reconnect_attempts + 1}/{self.config.max_reconnect_attempts})"
        )
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        while self._state != ConnectionState.CONNECTED:
            if self._exhausted:
                self.logger.error(
                    f"Max reconnection attempts ({self.config.max_reconnect_attempts}) exceeded"
                )
                return

            await asyncio.sleep(self.config.reconnect_delay_seconds)
            if self._state == ConnectionState.CONNECTED:
                return

            self._reconnect_attempts += 1
            try:
                await self.connect()
            except ExecutionError as e:
                self.logger.error(
                    f"Reconnection attempt {self._reconnect_attempts}/"
                    f"{self.config.max_reconnect_attempts} failed: {e.message}"
                )
            else:
                self.logger.info("Reconnection successful")

    # ========== Request ==========

    async def request(self, message: Any) -> Any:
        """
        Send one message and return the decoded reply

        Requests on one transport are serialized; bytes of two requests
        never interleave on the wire.

        Raises:
            ExecutionError: CONNECTION_ERROR, TIMEOUT, NETWORK_ERROR,
                SERIALIZATION_ERROR, or a peer-derived code
        """
        async with self._request_lock:
            await self._ensure_connected()

            with CorrelationContext() as cid:
                try:
                    data = self.codec.encode(message)
                except Exception as e:
                    raise ExecutionError.serialization(self.name, e) from e

                self.logger.debug(f"[{cid}] -> {self.name} request ({len(data)} bytes): {message!r}")
                if self.config.verbose:
                    self.logger.debug(f"[{cid}] -> raw: {data.hex()}")

                reply = await self._exchange_with_timeout(data, message)

                if self.config.verbose:
                    self.logger.debug(f"[{cid}] <- raw: {reply.hex()}")
                try:
                    response = self._reply_codec().decode(reply)
                except Exception as e:
                    raise ExecutionError.serialization(self.name, e) from e

                self.logger.debug(f"[{cid}] <- {self.name} response ({len(reply)} bytes): {response!r}")
                return response

    async def _exchange_with_timeout(self, data: bytes, message: Any) -> bytes:
        timeout = self.config.timeout_seconds
        try:
            return await asyncio.wait_for(self._exchange(data, message), timeout=timeout)
        except asyncio.CancelledError:
            # Reply may still arrive; drop the channel so it cannot pair with the next request
            self.logger.warning(f"{self.name} request cancelled while awaiting reply; closing channel")
            self._state = ConnectionState.DISCONNECTED
            await self._close_quietly()
            raise
        except asyncio.TimeoutError as e:
            error = ExecutionError.timeout(self.name, timeout, e)
        except ExecutionError as e:
            error = e
        except Exception as e:
            if isinstance(e, OSError) or is_network_failure(e):
                error = ExecutionError.network(self.name, e)
            else:
                error = classify_error(e, self.name)

        self.logger.error(f"{self.name} request failed: {error}")
        if error.code in _CONNECTION_LOSS_CODES:
            await self._handle_connection_loss()
        raise error
