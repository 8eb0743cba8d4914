"""
Operation type definitions

Each operation is an immutable, tagged record. The (execution_type,
event_type) pair identifies the action; the dataclass fields are its
parameters. OPERATION_TYPES is the closed registry of recognized pairs.
"""

from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

# SPL Token program (default token program for Pump.fun mints)
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class ExecutionType(Enum):
    """Action family"""
    PUMP_FUN = "PUMP_FUN"
    PUMP_FUN_AMM = "PUMP_FUN_AMM"
    SYSTEM_TRANSFER = "SYSTEM_TRANSFER"
    SPL_TOKEN = "SPL_TOKEN"
    RAW_TRANSACTION = "RAW_TRANSACTION"


class EventType(Enum):
    """Action within a family"""
    BUY = "BUY"
    BUY_EXACT_QUOTE_IN = "BUY_EXACT_QUOTE_IN"
    SELL = "SELL"
    CREATE = "CREATE"
    MIGRATE = "MIGRATE"
    TRANSFER = "TRANSFER"
    TRANSFER_CHECKED = "TRANSFER_CHECKED"
    CREATE_ATA = "CREATE_ATA"
    CLOSE_ACCOUNT = "CLOSE_ACCOUNT"
    APPROVE = "APPROVE"
    REVOKE = "REVOKE"
    MINT_TO = "MINT_TO"
    BURN = "BURN"
    SYNC_NATIVE = "SYNC_NATIVE"
    EXECUTE = "EXECUTE"


OperationKind = Tuple[ExecutionType, EventType]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _wire_value(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _wire_fields(value)
    if isinstance(value, (list, tuple)):
        return [_wire_value(item) for item in value]
    return value


def _wire_fields(obj: Any) -> Dict[str, Any]:
    """camelCase mapping of a dataclass; unset optional fields are left out"""
    wire = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None and f.default is None:
            continue
        wire[_camel(f.name)] = _wire_value(value)
    return wire


def _coerce(obj: Any, name: str, cls: type) -> None:
    """Allow nested records to be passed as plain mappings"""
    value = getattr(obj, name)
    if isinstance(value, Mapping):
        object.__setattr__(obj, name, cls(**value))


# ============================================================================
# Nested records
# ============================================================================

@dataclass(frozen=True)
class PumpFunPoolAccounts:
    """Bonding-curve accounts (coin_creator is None for legacy curves)"""
    coin_creator: Optional[str]


@dataclass(frozen=True)
class PumpFunAmmPoolAccounts:
    """Pump.fun AMM pool accounts"""
    base_mint: str
    quote_mint: str
    coin_creator: Optional[str]
    pool_creator: str


@dataclass(frozen=True)
class TokenMeta:
    """Token metadata for Pump.fun CREATE"""
    name: str
    symbol: str
    uri: str


# ============================================================================
# Base
# ============================================================================

@dataclass(frozen=True)
class Operation:
    """
    Base class for all batch operations

    Subclasses set execution_type/event_type as class attributes and declare
    their parameters as dataclass fields (snake_case; rendered camelCase).
    """
    execution_type: ClassVar[ExecutionType]
    event_type: ClassVar[EventType]

    @property
    def kind(self) -> OperationKind:
        return (self.execution_type, self.event_type)

    def to_wire(self) -> Dict[str, Any]:
        wire: Dict[str, Any] = {
            "executionType": self.execution_type.value,
            "eventType": self.event_type.value,
        }
        wire.update(_wire_fields(self))
        return wire


# ============================================================================
# Pump.fun (bonding curve)
# ============================================================================

@dataclass(frozen=True)
class PumpFunBuy(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN
    event_type: ClassVar[EventType] = EventType.BUY

    pool: str
    pool_accounts: PumpFunPoolAccounts
    user: str
    sol_amount_in: int
    token_amount_out: int
    token_program: str = TOKEN_PROGRAM_ID
    mayhem_mode_enabled: bool = False

    def __post_init__(self):
        _coerce(self, "pool_accounts", PumpFunPoolAccounts)


@dataclass(frozen=True)
class PumpFunSell(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN
    event_type: ClassVar[EventType] = EventType.SELL

    pool: str
    pool_accounts: PumpFunPoolAccounts
    user: str
    token_amount_in: int
    min_sol_amount_out: int
    token_program: str = TOKEN_PROGRAM_ID
    mayhem_mode_enabled: bool = False
    close_associated_token_account: Optional[bool] = None

    def __post_init__(self):
        _coerce(self, "pool_accounts", PumpFunPoolAccounts)


@dataclass(frozen=True)
class PumpFunCreate(Operation):
    """mint_secret_key is the base64-encoded secret key of the new mint"""
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN
    event_type: ClassVar[EventType] = EventType.CREATE

    user: str
    pool: str
    mint_secret_key: str
    meta: TokenMeta

    def __post_init__(self):
        _coerce(self, "meta", TokenMeta)


@dataclass(frozen=True)
class PumpFunMigrate(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN
    event_type: ClassVar[EventType] = EventType.MIGRATE

    pool: str
    user: str


# ============================================================================
# Pump.fun AMM
# ============================================================================

@dataclass(frozen=True)
class PumpFunAmmBuy(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN_AMM
    event_type: ClassVar[EventType] = EventType.BUY

    pool: str
    pool_accounts: PumpFunAmmPoolAccounts
    user: str
    max_quote_amount_in: int
    base_amount_out: int
    base_token_program: str = TOKEN_PROGRAM_ID
    quote_token_program: str = TOKEN_PROGRAM_ID
    close_base_associated_token_account: Optional[bool] = None
    close_quote_associated_token_account: Optional[bool] = None

    def __post_init__(self):
        _coerce(self, "pool_accounts", PumpFunAmmPoolAccounts)


@dataclass(frozen=True)
class PumpFunAmmBuyExactQuoteIn(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN_AMM
    event_type: ClassVar[EventType] = EventType.BUY_EXACT_QUOTE_IN

    pool: str
    pool_accounts: PumpFunAmmPoolAccounts
    user: str
    spendable_quote_in: int
    min_base_amount_out: int
    base_token_program: str = TOKEN_PROGRAM_ID
    quote_token_program: str = TOKEN_PROGRAM_ID
    close_base_associated_token_account: Optional[bool] = None
    close_quote_associated_token_account: Optional[bool] = None

    def __post_init__(self):
        _coerce(self, "pool_accounts", PumpFunAmmPoolAccounts)


@dataclass(frozen=True)
class PumpFunAmmSell(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.PUMP_FUN_AMM
    event_type: ClassVar[EventType] = EventType.SELL

    pool: str
    pool_accounts: PumpFunAmmPoolAccounts
    user: str
    base_amount_in: int
    min_quote_amount_out: int
    base_token_program: str = TOKEN_PROGRAM_ID
    quote_token_program: str = TOKEN_PROGRAM_ID
    close_base_associated_token_account: Optional[bool] = None
    close_quote_associated_token_account: Optional[bool] = None

    def __post_init__(self):
        _coerce(self, "pool_accounts", PumpFunAmmPoolAccounts)


# ============================================================================
# System program
# ============================================================================

@dataclass(frozen=True)
class SystemTransfer(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SYSTEM_TRANSFER
    event_type: ClassVar[EventType] = EventType.TRANSFER

    sender: str
    recipient: str
    lamports: int


# ============================================================================
# SPL Token
# ============================================================================

@dataclass(frozen=True)
class SplTokenTransfer(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.TRANSFER

    mint: str
    source_owner: str
    destination_owner: str
    amount: int


@dataclass(frozen=True)
class SplTokenTransferChecked(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.TRANSFER_CHECKED

    mint: str
    source_owner: str
    destination_owner: str
    amount: int
    decimals: int


@dataclass(frozen=True)
class SplTokenCreateATA(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.CREATE_ATA

    payer: str
    owner: str
    mint: str


@dataclass(frozen=True)
class SplTokenCloseAccount(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.CLOSE_ACCOUNT

    mint: str
    owner: str


@dataclass(frozen=True)
class SplTokenApprove(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.APPROVE

    mint: str
    delegate: str
    owner: str
    amount: int


@dataclass(frozen=True)
class SplTokenRevoke(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.REVOKE

    mint: str
    owner: str


@dataclass(frozen=True)
class SplTokenMintTo(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.MINT_TO

    mint: str
    destination_owner: str
    authority: str
    amount: int


@dataclass(frozen=True)
class SplTokenBurn(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.BURN

    mint: str
    owner: str
    amount: int


@dataclass(frozen=True)
class SplTokenSyncNative(Operation):
    execution_type: ClassVar[ExecutionType] = ExecutionType.SPL_TOKEN
    event_type: ClassVar[EventType] = EventType.SYNC_NATIVE

    owner: str


# ============================================================================
# Raw transaction
# ============================================================================

@dataclass(frozen=True)
class RawTransaction(Operation):
    """
    Opaque, externally built transaction

    The bytes are forwarded untouched. additional_signers lists public keys
    (base58) of engine-managed wallets that must co-sign.
    """
    execution_type: ClassVar[ExecutionType] = ExecutionType.RAW_TRANSACTION
    event_type: ClassVar[EventType] = EventType.EXECUTE

    transaction_bytes: bytes
    additional_signers: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        if isinstance(self.transaction_bytes, (bytearray, memoryview)):
            object.__setattr__(self, "transaction_bytes", bytes(self.transaction_bytes))
        if self.additional_signers is not None and not isinstance(self.additional_signers, tuple):
            object.__setattr__(self, "additional_signers", tuple(self.additional_signers))

    def __repr__(self) -> str:
        return (
            f"RawTransaction({len(self.transaction_bytes)} bytes, "
            f"additional_signers={self.additional_signers})"
        )


# ============================================================================
# Registry
# ============================================================================

OPERATION_TYPES: Dict[OperationKind, Type[Operation]] = {
    (cls.execution_type, cls.event_type): cls
    for cls in (
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
    )
}

# An operation as accepted by the client: typed, or already in wire form
OperationData = Union[Operation, Mapping[str, Any]]


def operation_kind(operation: Any) -> Optional[OperationKind]:
    """
    Resolve the (execution_type, event_type) pair of an operation

    Wire-form mappings are accepted; a RAW_TRANSACTION mapping may omit
    eventType. Returns None when the pair is missing or not recognized.
    """
    if isinstance(operation, Operation):
        kind = operation.kind
    elif isinstance(operation, Mapping):
        try:
            execution_type = ExecutionType(operation.get("executionType"))
            event = operation.get("eventType")
            if event is None and execution_type == ExecutionType.RAW_TRANSACTION:
                event = EventType.EXECUTE.value
            kind = (execution_type, EventType(event))
        except ValueError:
            return None
    else:
        return None
    return kind if kind in OPERATION_TYPES else None


def operation_to_wire(operation: OperationData) -> Dict[str, Any]:
    if isinstance(operation, Operation):
        return operation.to_wire()
    return dict(operation)
