"""
Type definitions for the execution client
"""

from .operations import (
    TOKEN_PROGRAM_ID,
    ExecutionType,
    EventType,
    OperationKind,
    OperationData,
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
    operation_kind,
    operation_to_wire,
)
from .transport_modes import (
    TransportMode,
    NO_BRIBE_MODES,
    TRANSPORT_DESCRIPTIONS,
    TRANSPORT_LATENCY,
    wire_transport_mode,
)
from .requests import (
    ExecutionRequest,
    WalletCreationRequest,
    PING_MESSAGE_TYPE,
    WALLET_CREATE_MESSAGE_TYPE,
)
from .responses import (
    TransactionResponse,
    SuccessResponse,
    ErrorResponse,
    WalletCreationResponse,
    is_success_response,
    is_error_response,
)
from .stats import ClientStats

__all__ = [
    # Operations
    "TOKEN_PROGRAM_ID",
    "ExecutionType",
    "EventType",
    "OperationKind",
    "OperationData",
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
    "operation_kind",
    "operation_to_wire",
    # Transport modes
    "TransportMode",
    "NO_BRIBE_MODES",
    "TRANSPORT_DESCRIPTIONS",
    "TRANSPORT_LATENCY",
    "wire_transport_mode",
    # Requests / responses
    "ExecutionRequest",
    "WalletCreationRequest",
    "PING_MESSAGE_TYPE",
    "WALLET_CREATE_MESSAGE_TYPE",
    "TransactionResponse",
    "SuccessResponse",
    "ErrorResponse",
    "WalletCreationResponse",
    "is_success_response",
    "is_error_response",
    # Stats
    "ClientStats",
]
