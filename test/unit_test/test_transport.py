"""
Unit tests for the transport state machine

Runs against an in-memory Transport subclass; no engine is needed.
"""

import asyncio
import unittest

import msgpack

from exec_client.config import TransportConfig
from exec_client.errors import ErrorCode, ExecutionError
from exec_client.transport import ConnectionState, JsonCodec, Transport
from exec_client.transport.correlation import get_correlation_id


def make_config(**overrides) -> TransportConfig:
    params = dict(
        address="inproc://fake-engine",
        timeout_seconds=1.0,
        auto_reconnect=True,
        max_reconnect_attempts=3,
        reconnect_delay_seconds=0.01,
    )
    params.update(overrides)
    return TransportConfig(**params)


async def echo_handler(data: bytes, message):
    return msgpack.packb({"success": True, "echo": msgpack.unpackb(data, raw=False)}, use_bin_type=True)


class FakeTransport(Transport):
    """In-memory channel; handler(data, message) produces the reply bytes"""

    name = "FAKE"

    def __init__(self, config, codec=None, open_error=None, open_delay=0.0, close_error=None):
        super().__init__(config, codec)
        self.open_error = open_error
        self.open_delay = open_delay
        self.close_error = close_error
        self.handler = echo_handler
        self.open_calls = 0
        self.close_calls = 0

    async def _open(self):
        self.open_calls += 1
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error

    async def _close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error

    async def _exchange(self, data, message):
        return await self.handler(data, message)


class TestConnect(unittest.IsolatedAsyncioTestCase):
    """connect() / disconnect() behaviour"""

    async def test_concurrent_connects_share_one_attempt(self):
        transport = FakeTransport(make_config(), open_delay=0.05)

        await asyncio.gather(*(transport.connect() for _ in range(5)))

        self.assertEqual(transport.open_calls, 1)
        self.assertTrue(transport.is_connected())
        self.assertEqual(transport.state, ConnectionState.CONNECTED)
        self.assertIsNotNone(transport.connected_at)
        await transport.disconnect()

    async def test_connect_is_noop_when_connected(self):
        transport = FakeTransport(make_config())
        await transport.connect()
        await transport.connect()
        self.assertEqual(transport.open_calls, 1)
        await transport.disconnect()

    async def test_connect_failure_leaves_disconnected(self):
        transport = FakeTransport(make_config(), open_error=OSError("Connection refused"))

        with self.assertRaises(ExecutionError) as ctx:
            await transport.connect()

        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertEqual(ctx.exception.transport, "FAKE")
        self.assertEqual(transport.state, ConnectionState.DISCONNECTED)
        self.assertFalse(transport.is_connected())

    async def test_disconnect_is_idempotent(self):
        transport = FakeTransport(make_config())
        await transport.disconnect()
        await transport.connect()
        await transport.disconnect()
        await transport.disconnect()
        self.assertEqual(transport.state, ConnectionState.DISCONNECTED)

    async def test_disconnect_swallows_close_errors(self):
        transport = FakeTransport(make_config(), close_error=RuntimeError("already closed"))
        await transport.connect()
        await transport.disconnect()
        self.assertFalse(transport.is_connected())

    async def test_disconnect_during_connect(self):
        transport = FakeTransport(make_config(), open_delay=0.2)

        pending = asyncio.create_task(transport.connect())
        await asyncio.sleep(0.02)
        await transport.disconnect()

        with self.assertRaises(ExecutionError) as ctx:
            await pending

        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertEqual(transport.state, ConnectionState.DISCONNECTED)


class TestRequest(unittest.IsolatedAsyncioTestCase):
    """request() round trips and failure mapping"""

    async def asyncSetUp(self):
        self.transport = FakeTransport(make_config())
        await self.transport.connect()

    async def asyncTearDown(self):
        await self.transport.disconnect()

    async def test_round_trip(self):
        reply = await self.transport.request({"type": "PING"})
        self.assertEqual(reply, {"success": True, "echo": {"type": "PING"}})

    async def test_injected_codec(self):
        transport = FakeTransport(make_config(), codec=JsonCodec())

        async def json_echo(data, message):
            return data

        transport.handler = json_echo
        await transport.connect()
        reply = await transport.request({"transactionBytes": b"\x00\x01"})
        # bytes travel as base64 in JSON
        self.assertEqual(reply, {"transactionBytes": "AAE="})
        await transport.disconnect()

    async def test_encode_failure_is_serialization_error(self):
        with self.assertRaises(ExecutionError) as ctx:
            await self.transport.request({"value": object()})

        self.assertEqual(ctx.exception.code, ErrorCode.SERIALIZATION_ERROR)
        self.assertTrue(self.transport.is_connected())

    async def test_decode_failure_is_serialization_error(self):
        async def garbage(data, message):
            return b"\xc1"

        self.transport.handler = garbage
        with self.assertRaises(ExecutionError) as ctx:
            await self.transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.SERIALIZATION_ERROR)
        self.assertFalse(ctx.exception.is_retryable())
        self.assertTrue(self.transport.is_connected())

    async def test_peer_error_passes_through(self):
        peer_error = ExecutionError("nonce pool empty", ErrorCode.RESOURCE_EXHAUSTED, "FAKE")

        async def exhausted(data, message):
            raise peer_error

        self.transport.handler = exhausted
        with self.assertRaises(ExecutionError) as ctx:
            await self.transport.request({"type": "PING"})

        self.assertIs(ctx.exception, peer_error)
        self.assertTrue(self.transport.is_connected())

    async def test_unknown_exchange_error_is_classified(self):
        async def broken(data, message):
            raise RuntimeError("invalid frame")

        self.transport.handler = broken
        with self.assertRaises(ExecutionError) as ctx:
            await self.transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_REQUEST)
        self.assertTrue(self.transport.is_connected())

    async def test_each_exchange_has_correlation_id(self):
        seen = []

        async def record(data, message):
            seen.append(get_correlation_id())
            return await echo_handler(data, message)

        self.transport.handler = record
        await self.transport.request({"n": 1})
        await self.transport.request({"n": 2})

        self.assertEqual(len(seen), 2)
        self.assertTrue(all(cid and len(cid) == 12 for cid in seen))
        self.assertNotEqual(seen[0], seen[1])
        self.assertIsNone(get_correlation_id())

    async def test_requests_never_overlap(self):
        active = 0
        max_active = 0

        async def slow_echo(data, message):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            active -= 1
            return await echo_handler(data, message)

        self.transport.handler = slow_echo
        replies = await asyncio.gather(*(self.transport.request({"n": i}) for i in range(5)))

        self.assertEqual(max_active, 1)
        self.assertEqual([r["echo"]["n"] for r in replies], [0, 1, 2, 3, 4])


class TestTimeout(unittest.IsolatedAsyncioTestCase):
    """Timeouts close the channel and are retryable"""

    async def test_silent_peer_times_out(self):
        transport = FakeTransport(make_config(timeout_seconds=0.05, auto_reconnect=False))

        async def never(data, message):
            await asyncio.Event().wait()

        transport.handler = never
        await transport.connect()

        loop = asyncio.get_running_loop()
        started = loop.time()
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})
        elapsed = loop.time() - started

        self.assertEqual(ctx.exception.code, ErrorCode.TIMEOUT)
        self.assertTrue(ctx.exception.is_retryable())
        self.assertLess(elapsed, 0.5)
        self.assertFalse(transport.is_connected())
        self.assertEqual(transport.close_calls, 1)

        # Channel is gone and auto-reconnect is off
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})
        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        await transport.disconnect()


class TestCancellation(unittest.IsolatedAsyncioTestCase):
    """A cancelled request must not leave its reply for the next one"""

    async def test_cancelled_request_closes_channel(self):
        transport = FakeTransport(make_config())

        async def slow_echo(data, message):
            await asyncio.sleep(0.2)
            return await echo_handler(data, message)

        transport.handler = slow_echo
        await transport.connect()

        pending = asyncio.create_task(transport.request({"id": 1}))
        await asyncio.sleep(0.05)
        pending.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await pending

        self.assertFalse(transport.is_connected())
        self.assertEqual(transport.close_calls, 1)

        transport.handler = echo_handler
        reply = await transport.request({"id": 2})

        self.assertEqual(reply["echo"], {"id": 2})
        self.assertEqual(transport.open_calls, 2)
        await transport.disconnect()


class TestReconnect(unittest.IsolatedAsyncioTestCase):
    """Reconnect counter and background reconnect"""

    async def test_not_connected_without_auto_reconnect(self):
        transport = FakeTransport(make_config(auto_reconnect=False))

        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertEqual(transport.open_calls, 0)

    async def test_request_connects_transparently(self):
        transport = FakeTransport(make_config())
        self.assertEqual(transport.get_reconnect_attempts(), 0)

        reply = await transport.request({"type": "PING"})

        self.assertTrue(reply["success"])
        self.assertTrue(transport.is_connected())
        # Reset by the successful connect
        self.assertEqual(transport.get_reconnect_attempts(), 0)
        await transport.disconnect()

    async def test_gives_up_after_max_attempts(self):
        transport = FakeTransport(make_config(max_reconnect_attempts=3), open_error=OSError("refused"))

        # First connect of a fresh transport is not a reconnect
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})
        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertEqual(transport.get_reconnect_attempts(), 0)

        for attempt in range(1, 4):
            with self.assertRaises(ExecutionError) as ctx:
                await transport.request({"type": "PING"})
            self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
            self.assertEqual(transport.get_reconnect_attempts(), attempt)

        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertIn("Max reconnection attempts (3)", ctx.exception.message)
        self.assertEqual(transport.open_calls, 4)

        transport.reset_reconnect_attempts()
        self.assertEqual(transport.get_reconnect_attempts(), 0)

    async def test_network_failure_reconnects_in_background(self):
        transport = FakeTransport(make_config(reconnect_delay_seconds=0.01))
        await transport.connect()

        async def reset(data, message):
            raise ConnectionResetError("connection reset by peer")

        transport.handler = reset
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.NETWORK_ERROR)
        self.assertFalse(transport.is_connected())

        await asyncio.sleep(0.1)

        self.assertTrue(transport.is_connected())
        self.assertEqual(transport.open_calls, 2)
        self.assertEqual(transport.get_reconnect_attempts(), 0)
        await transport.disconnect()

    async def test_disconnect_cancels_pending_reconnect(self):
        transport = FakeTransport(make_config(reconnect_delay_seconds=0.2))
        await transport.connect()

        async def reset(data, message):
            raise ConnectionResetError("connection reset by peer")

        transport.handler = reset
        with self.assertRaises(ExecutionError):
            await transport.request({"type": "PING"})

        await transport.disconnect()
        await asyncio.sleep(0.3)

        self.assertFalse(transport.is_connected())
        self.assertEqual(transport.open_calls, 1)

    async def test_first_connect_allowed_without_reconnects(self):
        transport = FakeTransport(make_config(max_reconnect_attempts=0))

        reply = await transport.request({"type": "PING"})
        self.assertTrue(reply["success"])
        self.assertEqual(transport.get_reconnect_attempts(), 0)

        async def reset(data, message):
            raise ConnectionResetError("connection reset by peer")

        transport.handler = reset
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})
        self.assertEqual(ctx.exception.code, ErrorCode.NETWORK_ERROR)

        # No reconnects allowed after the loss
        transport.handler = echo_handler
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})

        self.assertIn("Max reconnection attempts (0)", ctx.exception.message)
        self.assertEqual(transport.open_calls, 1)
        await transport.disconnect()

    async def test_background_reconnect_gives_up(self):
        transport = FakeTransport(make_config(max_reconnect_attempts=3, reconnect_delay_seconds=0.01))
        await transport.connect()

        async def reset(data, message):
            raise ConnectionResetError("connection reset by peer")

        transport.handler = reset
        transport.open_error = OSError("Connection refused")
        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})
        self.assertEqual(ctx.exception.code, ErrorCode.NETWORK_ERROR)

        await asyncio.sleep(0.3)

        self.assertFalse(transport.is_connected())
        self.assertEqual(transport.get_reconnect_attempts(), 3)
        self.assertEqual(transport.open_calls, 4)

        with self.assertRaises(ExecutionError) as ctx:
            await transport.request({"type": "PING"})

        self.assertEqual(ctx.exception.code, ErrorCode.CONNECTION_ERROR)
        self.assertIn("Max reconnection attempts (3)", ctx.exception.message)
        self.assertEqual(transport.open_calls, 4)
        await transport.disconnect()


if __name__ == "__main__":
    unittest.main()
