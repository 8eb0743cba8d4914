"""
TransactionBuilder - fluent batch composition

Operations are appended in call order and executed by the engine as one
atomic batch. Nothing is reordered or deduplicated.
"""

import inspect
import logging
from typing import Any, Iterable, List, Optional, Tuple, Union, TYPE_CHECKING

from .dex import PoolHandleFactory, to_transaction_bytes
from .errors import ExecutionError
from .types import (
    ExecutionRequest,
    OperationData,
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
    TransactionResponse,
    TransportMode,
)

if TYPE_CHECKING:
    from .client import ExecutionClient

logger = logging.getLogger(__name__)

BUILDER_TAG = "BUILDER"

DEFAULT_PRIORITY_FEE_LAMPORTS = 1_000_000
DEFAULT_TRANSPORT = TransportMode.FLASH


class TransactionBuilder:
    """
    Mutable accumulator for one batch

    Each operation method appends and returns the builder. Setters
    overwrite (last write wins).

    Usage:
        response = await (
            TransactionBuilder(client)
            .system_transfer(sender=wallet, recipient=other, lamports=1_000_000)
            .pump_fun_buy(
                pool=mint,
                pool_accounts={"coin_creator": creator},
                user=wallet,
                sol_amount_in=1_000_000,
                token_amount_out=3_400_000_000,
            )
            .set_fee_payer(wallet)
            .set_bribe(1_000_000)
            .send()
        )

        # Dry run with the same batch
        simulation = await builder.simulate()
    """

    def __init__(self, client: "ExecutionClient"):
        self._client = client
        self._operations: List[OperationData] = []
        self._fee_payer: Optional[str] = None
        self._priority_fee_lamports: Any = DEFAULT_PRIORITY_FEE_LAMPORTS
        self._transport: TransportMode = DEFAULT_TRANSPORT
        self._bribe_lamports: Optional[int] = None

    @property
    def client(self) -> "ExecutionClient":
        return self._client

    @property
    def operations(self) -> Tuple[OperationData, ...]:
        """Snapshot of the queued operations in execution order"""
        return tuple(self._operations)

    @property
    def operation_count(self) -> int:
        return len(self._operations)

    def has_operations(self) -> bool:
        return bool(self._operations)

    def add(self, operation: OperationData) -> "TransactionBuilder":
        """Append an operation (typed or in wire form)"""
        self._operations.append(operation)
        logger.debug(f"Queued operation #{len(self._operations)}: {operation!r}")
        return self

    # ========== Pump.fun ==========

    def pump_fun_buy(self, **params) -> "TransactionBuilder":
        """Buy on a bonding curve: pool, pool_accounts, user, sol_amount_in, token_amount_out"""
        return self.add(PumpFunBuy(**params))

    def pump_fun_sell(self, **params) -> "TransactionBuilder":
        """Sell on a bonding curve: pool, pool_accounts, user, token_amount_in, min_sol_amount_out"""
        return self.add(PumpFunSell(**params))

    def pump_fun_create(self, **params) -> "TransactionBuilder":
        return self.add(PumpFunCreate(**params))

    def pump_fun_migrate(self, **params) -> "TransactionBuilder":
        return self.add(PumpFunMigrate(**params))

    def pump_fun_amm_buy(self, **params) -> "TransactionBuilder":
        return self.add(PumpFunAmmBuy(**params))

    def pump_fun_amm_buy_exact_quote_in(self, **params) -> "TransactionBuilder":
        return self.add(PumpFunAmmBuyExactQuoteIn(**params))

    def pump_fun_amm_sell(self, **params) -> "TransactionBuilder":
        return self.add(PumpFunAmmSell(**params))

    # ========== System / SPL Token ==========

    def system_transfer(self, sender: str, recipient: str, lamports: int) -> "TransactionBuilder":
        return self.add(SystemTransfer(sender=sender, recipient=recipient, lamports=lamports))

    def spl_token_transfer(self, **params) -> "TransactionBuilder":
        return self.add(SplTokenTransfer(**params))

    def spl_token_transfer_checked(self, **params) -> "TransactionBuilder":
        return self.add(SplTokenTransferChecked(**params))

    def spl_token_create_ata(self, payer: str, owner: str, mint: str) -> "TransactionBuilder":
        return self.add(SplTokenCreateATA(payer=payer, owner=owner, mint=mint))

    def spl_token_close_account(self, mint: str, owner: str) -> "TransactionBuilder":
        return self.add(SplTokenCloseAccount(mint=mint, owner=owner))

    def spl_token_approve(self, **params) -> "TransactionBuilder":
        return self.add(SplTokenApprove(**params))

    def spl_token_revoke(self, mint: str, owner: str) -> "TransactionBuilder":
        return self.add(SplTokenRevoke(mint=mint, owner=owner))

    def spl_token_mint_to(self, **params) -> "TransactionBuilder":
        return self.add(SplTokenMintTo(**params))

    def spl_token_burn(self, mint: str, owner: str, amount: int) -> "TransactionBuilder":
        return self.add(SplTokenBurn(mint=mint, owner=owner, amount=amount))

    def spl_token_sync_native(self, owner: str) -> "TransactionBuilder":
        return self.add(SplTokenSyncNative(owner=owner))

    # ========== Raw transactions ==========

    def raw_transaction(
        self,
        transaction: Any,
        additional_signers: Optional[Iterable[str]] = None,
    ) -> "TransactionBuilder":
        """
        Append an externally built transaction

        Args:
            transaction: Serialized bytes, a solders Transaction or
                VersionedTransaction, or anything with serialize()
            additional_signers: Engine-managed wallets (base58) that must co-sign
        """
        signers = tuple(additional_signers) if additional_signers is not None else None
        return self.add(RawTransaction(
            transaction_bytes=to_transaction_bytes(transaction),
            additional_signers=signers,
        ))

    async def pool_swap(
        self,
        factory: PoolHandleFactory,
        pool_address: str,
        params: Any,
    ) -> "TransactionBuilder":
        """
        Append a DEX swap built by a pool handle

        Args:
            factory: Callable (connection, pool_address) -> PoolHandle
            pool_address: Pool to swap against
            params: Passed through to the handle's build_swap_instruction()

        Raises:
            ExecutionError: INVALID_REQUEST if the client has no RPC connection
        """
        handle = factory(self._client.require_connection(), pool_address)
        payload = handle.build_swap_instruction(params)
        if inspect.isawaitable(payload):
            payload = await payload
        return self.raw_transaction(payload)

    # ========== Execution parameters ==========

    def set_fee_payer(self, address: str) -> "TransactionBuilder":
        self._fee_payer = address
        return self

    def set_priority_fee(self, lamports: int) -> "TransactionBuilder":
        self._priority_fee_lamports = lamports
        return self

    def set_bribe(self, lamports: int) -> "TransactionBuilder":
        """Tip for bribed modes (everything except SIMULATE and VANILLA)"""
        self._bribe_lamports = lamports
        return self

    def set_transport(self, mode: Union[TransportMode, str]) -> "TransactionBuilder":
        """
        Raises:
            ExecutionError: INVALID_REQUEST for an unknown mode name
        """
        try:
            self._transport = TransportMode.parse(mode)
        except ValueError as e:
            raise ExecutionError.invalid_request(str(e), BUILDER_TAG) from e
        return self

    # ========== Finalize ==========

    def _validate(self) -> None:
        if not self._operations:
            raise ExecutionError.invalid_request(
                "No operations added. Use methods like pump_fun_buy(), system_transfer(), "
                "etc. to add operations.",
                BUILDER_TAG,
            )
        if not self._fee_payer:
            raise ExecutionError.invalid_request(
                "Fee payer not set. Use set_fee_payer() to set the fee payer.",
                BUILDER_TAG,
            )
        fee = self._priority_fee_lamports
        if isinstance(fee, (int, float)) and fee < 0:
            raise ExecutionError.invalid_request("Priority fee cannot be negative.", BUILDER_TAG)
        if self._bribe_lamports is not None and self._bribe_lamports < 0:
            raise ExecutionError.invalid_request("Bribe amount cannot be negative.", BUILDER_TAG)

    def build_request(self, transport: Optional[TransportMode] = None) -> ExecutionRequest:
        """
        Finalize the queued batch into a request

        A missing bribe for a bribed mode is left for the engine to reject.

        Args:
            transport: Override the configured mode for this request only
        """
        self._validate()
        operations = list(self._operations)
        return ExecutionRequest(
            data=operations[0] if len(operations) == 1 else operations,
            fee_payer=self._fee_payer,
            priority_fee_lamports=self._priority_fee_lamports,
            transport=transport or self._transport,
            bribe_lamports=self._bribe_lamports,
        )

    async def send(self) -> TransactionResponse:
        """Execute the batch with the configured transport mode"""
        return await self._client.execute(self.build_request())

    async def simulate(self) -> TransactionResponse:
        """Execute the batch in SIMULATE mode; the configured mode is left unchanged"""
        return await self._client.execute(self.build_request(TransportMode.SIMULATE))

    def reset(self) -> "TransactionBuilder":
        """Clear operations and restore default parameters"""
        self._operations = []
        self._fee_payer = None
        self._priority_fee_lamports = DEFAULT_PRIORITY_FEE_LAMPORTS
        self._transport = DEFAULT_TRANSPORT
        self._bribe_lamports = None
        return self

    def __repr__(self) -> str:
        return (
            f"TransactionBuilder(operations={len(self._operations)}, "
            f"transport={self._transport.value}, fee_payer={self._fee_payer!r})"
        )
