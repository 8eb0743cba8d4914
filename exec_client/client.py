"""
ExecutionClient - entry point for talking to the execution engine

Validates requests, forwards them through a Transport and keeps
request/latency statistics.
"""

import logging
import math
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Mapping, Optional

from solders.pubkey import Pubkey

from .config import CONTENT_TYPES, ClientConfig
from .errors import ExecutionError, classify_error
from .transport import HttpTransport, Transport, ZmqTransport
from .types import (
    ExecutionRequest,
    ExecutionType,
    RawTransaction,
    TransactionResponse,
    TransportMode,
    WalletCreationRequest,
    WalletCreationResponse,
    ClientStats,
    PING_MESSAGE_TYPE,
    operation_kind,
)

logger = logging.getLogger(__name__)

CLIENT_TAG = "CLIENT"

# Serialized Solana transaction size bounds (packet limit is 1232 bytes)
MIN_RAW_TRANSACTION_BYTES = 100
MAX_RAW_TRANSACTION_BYTES = 1500


class ExecutionClient:
    """
    Client for the Solana execution engine

    The transport is picked from the address scheme: http(s):// uses the
    HTTP API (api_key required), tcp:// and ipc:// use ZeroMQ.

    Usage:
        async with ExecutionClient(ClientConfig(address="tcp://127.0.0.1:5555")) as client:
            response = await client.execute(ExecutionRequest(
                data=SystemTransfer(sender=wallet, recipient=other, lamports=1_000_000),
                fee_payer=wallet,
                priority_fee_lamports=1_000_000,
                transport=TransportMode.SIMULATE,
            ))
            print(client.get_stats())
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize ExecutionClient

        Args:
            config: Client configuration (environment defaults if None)
            transport: Pre-built transport; overrides the address scheme

        Raises:
            ExecutionError: INVALID_REQUEST for an HTTP address without api_key
                or an unknown content type
        """
        self.config = config or ClientConfig()
        self.logger = self.config.logger or logger

        if transport is None:
            transport = self._create_transport(self.config)
        self._transport = transport

        self._requests_sent = 0
        self._requests_successful = 0
        self._requests_failed = 0
        self._average_latency = 0.0
        self._connected_since = datetime.now(timezone.utc)

    @staticmethod
    def _create_transport(config: ClientConfig) -> Transport:
        if config.content_type not in CONTENT_TYPES:
            raise ExecutionError.invalid_request(
                f"Unsupported content_type '{config.content_type}', expected one of {CONTENT_TYPES}"
            )

        transport_config = config.transport_config()
        if config.is_http:
            if not config.api_key:
                raise ExecutionError.invalid_request(
                    "API key is required for HTTP transport. Set ClientConfig.api_key."
                )
            return HttpTransport(transport_config)
        return ZmqTransport(transport_config)

    # ========== Properties ==========

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def transport_type(self) -> str:
        """Transport name: HTTP or ZMQ"""
        return self._transport.name

    @property
    def connection(self) -> Optional[Any]:
        """Solana RPC connection used by DEX pool handles"""
        return self.config.connection

    def require_connection(self) -> Any:
        if self.config.connection is None:
            raise ExecutionError.invalid_request(
                "A Solana RPC connection is required. Set ClientConfig.connection."
            )
        return self.config.connection

    def is_connected(self) -> bool:
        return self._transport.is_connected()

    # ========== Lifecycle ==========

    async def connect(self) -> None:
        """
        Connect to the execution engine

        Raises:
            ExecutionError: CONNECTION_ERROR if the engine is unreachable
        """
        try:
            await self._transport.connect()
        except Exception as e:
            raise classify_error(e, CLIENT_TAG) from e
        self._connected_since = datetime.now(timezone.utc)

    async def close(self) -> None:
        """Disconnect and cancel any pending reconnect"""
        await self._transport.disconnect()

    async def __aenter__(self) -> "ExecutionClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========== Requests ==========

    async def execute(self, request: ExecutionRequest) -> TransactionResponse:
        """
        Validate and submit a batch

        A response only reports whether the engine accepted the batch, not
        that it completed on-chain.

        Args:
            request: Batch and execution parameters

        Returns:
            SuccessResponse or ErrorResponse

        Raises:
            ExecutionError: INVALID_REQUEST before anything is sent, or the
                classified transport failure
        """
        self._requests_sent += 1
        self._validate_request(request)

        started = perf_counter()
        try:
            reply = await self._transport.request(request.to_wire())
            response = TransactionResponse.from_wire(reply)
        except Exception as e:
            self._requests_failed += 1
            raise self._classify(e) from e

        self._record_response(response.success, (perf_counter() - started) * 1000)

        if response.success:
            self.logger.info(f"Request accepted via {response.transport}: {response}")
        else:
            self.logger.warning(f"Request rejected via {response.transport}: {response}")
        return response

    async def create_wallet(self, user_public_key: str) -> WalletCreationResponse:
        """
        Provision a managed wallet on the engine

        The secret key comes back encrypted for user_public_key.
        """
        self._requests_sent += 1

        started = perf_counter()
        try:
            reply = await self._transport.request(WalletCreationRequest(user_public_key).to_wire())
            response = WalletCreationResponse.from_wire(reply)
        except Exception as e:
            self._requests_failed += 1
            raise self._classify(e) from e

        self._record_response(response.success, (perf_counter() - started) * 1000)
        return response

    async def ping(self) -> bool:
        """True if the engine answered; raises the classified failure otherwise"""
        try:
            reply = await self._transport.request({"type": PING_MESSAGE_TYPE})
        except Exception as e:
            raise self._classify(e) from e

        if not isinstance(reply, Mapping):
            raise ExecutionError.serialization(
                self._transport.name, ValueError(f"Malformed ping response: {reply!r}")
            )
        return True

    def _classify(self, error: Exception) -> ExecutionError:
        if isinstance(error, ExecutionError):
            return error
        if isinstance(error, ValueError):
            # Reply decoded but did not have the response shape
            return ExecutionError.serialization(self._transport.name, error)
        return classify_error(error, CLIENT_TAG)

    # ========== Statistics ==========

    def _record_response(self, success: bool, latency_ms: float) -> None:
        if success:
            self._requests_successful += 1
        else:
            self._requests_failed += 1

        n = self._requests_successful + self._requests_failed
        self._average_latency = (self._average_latency * (n - 1) + latency_ms) / n

    def get_stats(self) -> ClientStats:
        """Snapshot of counters merged with live transport state"""
        return ClientStats(
            requests_sent=self._requests_sent,
            requests_successful=self._requests_successful,
            requests_failed=self._requests_failed,
            average_latency=self._average_latency,
            connected=self._transport.is_connected(),
            connected_since=self._connected_since,
            reconnect_attempts=self._transport.get_reconnect_attempts(),
        )

    def reset_stats(self) -> None:
        self._requests_sent = 0
        self._requests_successful = 0
        self._requests_failed = 0
        self._average_latency = 0.0
        self._connected_since = datetime.now(timezone.utc)
        self._transport.reset_reconnect_attempts()

    # ========== Validation ==========

    def _validate_request(self, request: ExecutionRequest) -> None:
        if not request.operations:
            raise ExecutionError.invalid_request("Missing data field in request")

        if not request.fee_payer:
            raise ExecutionError.invalid_request("Missing fee_payer field in request")

        fee = request.priority_fee_lamports
        if (
            isinstance(fee, bool)
            or not isinstance(fee, (int, float))
            or not math.isfinite(fee)
            or fee < 0
        ):
            raise ExecutionError.invalid_request(
                "Invalid priority_fee_lamports: must be a non-negative number"
            )

        if request.transport is None or request.transport == "":
            raise ExecutionError.invalid_request("Missing transport field in request")
        try:
            TransportMode.parse(request.transport)
        except ValueError as e:
            raise ExecutionError.invalid_request(str(e)) from e

        for index, operation in enumerate(request.operations):
            kind = operation_kind(operation)
            if kind is None:
                raise ExecutionError.invalid_request(
                    f"Invalid operation at index {index}: unrecognized executionType/eventType"
                )
            if kind[0] == ExecutionType.RAW_TRANSACTION:
                self._validate_raw_transaction(index, operation)

    @staticmethod
    def _validate_raw_transaction(index: int, operation: Any) -> None:
        if isinstance(operation, RawTransaction):
            tx_bytes = operation.transaction_bytes
            signers = operation.additional_signers
        else:
            tx_bytes = operation.get("transactionBytes")
            signers = operation.get("additionalSigners")

        if not isinstance(tx_bytes, (bytes, bytearray, memoryview)):
            raise ExecutionError.invalid_request(
                f"Operation {index}: transaction bytes must be bytes"
            )
        size = len(tx_bytes)
        if size < MIN_RAW_TRANSACTION_BYTES:
            raise ExecutionError.invalid_request(
                f"Operation {index}: transaction too small ({size} bytes)"
            )
        if size > MAX_RAW_TRANSACTION_BYTES:
            raise ExecutionError.invalid_request(
                f"Operation {index}: transaction too large ({size} bytes)"
            )

        if signers is None:
            return
        if isinstance(signers, (str, bytes)) or not isinstance(signers, (list, tuple)):
            raise ExecutionError.invalid_request(
                f"Operation {index}: additional signers must be a list of public keys"
            )
        for i, signer in enumerate(signers):
            if not isinstance(signer, str):
                raise ExecutionError.invalid_request(
                    f"Operation {index}: additional_signers[{i}] must be a base58 string"
                )
            try:
                Pubkey.from_string(signer)
            except Exception as e:
                raise ExecutionError.invalid_request(
                    f"Operation {index}: additional_signers[{i}] is not a valid public key"
                ) from e

    def __repr__(self) -> str:
        return (
            f"ExecutionClient(address={self.config.resolved_address!r}, "
            f"transport={self.transport_type}, connected={self.is_connected()})"
        )
