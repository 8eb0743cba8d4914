"""
exec_client - asyncio client for a Solana transaction execution engine

Composes Pump.fun, system, SPL token and raw transaction operations into
atomic batches and submits them to the engine over:
- ZeroMQ (ipc:// or tcp://, default)
- HTTP (http:// or https://, API key required)

Usage:
    async with ExecutionClient(ClientConfig(address="ipc:///tmp/tx-executor.ipc")) as client:
        response = await (
            TransactionBuilder(client)
            .system_transfer(sender=wallet, recipient=other, lamports=1_000_000)
            .set_fee_payer(wallet)
            .simulate()
        )
"""

from .client import ExecutionClient
from .builder import TransactionBuilder
from .config import (
    ClientConfig,
    TransportConfig,
    LoggingConfig,
    setup_logging,
)
from .errors import ErrorCode, ExecutionError, classify_error
from .dex import PoolHandle, PoolHandleFactory, to_transaction_bytes
from .transport import (
    Transport,
    ConnectionState,
    ZmqTransport,
    HttpTransport,
    MsgpackCodec,
    JsonCodec,
)
from .types import (
    ExecutionType,
    EventType,
    Operation,
    PumpFunPoolAccounts,
    PumpFunAmmPoolAccounts,
    TokenMeta,
    PumpFunBuy,
    PumpFunSell,
    PumpFunCreate,
    PumpFunMigrate,
    PumpFunAmmBuy,
    PumpFunAmmBuyExactQuoteIn,
    PumpFunAmmSell,
    SystemTransfer,
    SplTokenTransfer,
    SplTokenTransferChecked,
    SplTokenCreateATA,
    SplTokenCloseAccount,
    SplTokenApprove,
    SplTokenRevoke,
    SplTokenMintTo,
    SplTokenBurn,
    SplTokenSyncNative,
    RawTransaction,
    OPERATION_TYPES,
    TransportMode,
    wire_transport_mode,
    ExecutionRequest,
    TransactionResponse,
    SuccessResponse,
    ErrorResponse,
    WalletCreationResponse,
    is_success_response,
    is_error_response,
    ClientStats,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "ExecutionClient",
    "TransactionBuilder",
    # Config
    "ClientConfig",
    "TransportConfig",
    "LoggingConfig",
    "setup_logging",
    # Errors
    "ErrorCode",
    "ExecutionError",
    "classify_error",
    # DEX seam
    "PoolHandle",
    "PoolHandleFactory",
    "to_transaction_bytes",
    # Transport
    "Transport",
    "ConnectionState",
    "ZmqTransport",
    "HttpTransport",
    "MsgpackCodec",
    "JsonCodec",
    # Operations
    "ExecutionType",
    "EventType",
    "Operation",
    "PumpFunPoolAccounts",
    "PumpFunAmmPoolAccounts",
    "TokenMeta",
    "PumpFunBuy",
    "PumpFunSell",
    "PumpFunCreate",
    "PumpFunMigrate",
    "PumpFunAmmBuy",
    "PumpFunAmmBuyExactQuoteIn",
    "PumpFunAmmSell",
    "SystemTransfer",
    "SplTokenTransfer",
    "SplTokenTransferChecked",
    "SplTokenCreateATA",
    "SplTokenCloseAccount",
    "SplTokenApprove",
    "SplTokenRevoke",
    "SplTokenMintTo",
    "SplTokenBurn",
    "SplTokenSyncNative",
    "RawTransaction",
    "OPERATION_TYPES",
    # Requests / responses
    "TransportMode",
    "wire_transport_mode",
    "ExecutionRequest",
    "TransactionResponse",
    "SuccessResponse",
    "ErrorResponse",
    "WalletCreationResponse",
    "is_success_response",
    "is_error_response",
    "ClientStats",
]
