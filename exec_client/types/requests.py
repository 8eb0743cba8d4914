"""
Request type definitions
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .operations import OperationData, operation_to_wire
from .transport_modes import TransportMode, wire_transport_mode

PING_MESSAGE_TYPE = "PING"
WALLET_CREATE_MESSAGE_TYPE = "WALLET_CREATE"


@dataclass
class ExecutionRequest:
    """
    One batch of operations plus shared execution parameters

    Attributes:
        data: A single operation, or a sequence executed in order as one unit
        fee_payer: Wallet paying transaction fees (base58)
        priority_fee_lamports: Priority fee in microlamports
        transport: Transport mode (enum member or name)
        bribe_lamports: Tip for bribed transport modes
    """
    data: Union[OperationData, Sequence[OperationData], None]
    fee_payer: Optional[str]
    priority_fee_lamports: Any
    transport: Union[TransportMode, str, None]
    bribe_lamports: Optional[int] = None

    @property
    def is_batch(self) -> bool:
        return isinstance(self.data, (list, tuple))

    @property
    def operations(self) -> Tuple[OperationData, ...]:
        """Operations in execution order"""
        if self.data is None:
            return ()
        if self.is_batch:
            return tuple(self.data)
        return (self.data,)

    def to_wire(self) -> Dict[str, Any]:
        """
        Message sent to the execution engine

        A single operation passed un-wrapped is sent as a mapping, a batch as
        a list preserving order. The transport is sent under its wire name.
        """
        if self.is_batch:
            data: Any = [operation_to_wire(op) for op in self.data]
        else:
            data = operation_to_wire(self.data)

        wire: Dict[str, Any] = {
            "data": data,
            "feePayer": self.fee_payer,
            "priorityFeeLamports": self.priority_fee_lamports,
            "transport": wire_transport_mode(TransportMode.parse(self.transport)),
        }
        if self.bribe_lamports is not None:
            wire["bribeLamports"] = self.bribe_lamports
        return wire


@dataclass
class WalletCreationRequest:
    """
    Ask the engine to provision a managed wallet

    The new secret key comes back encrypted for user_public_key.
    """
    user_public_key: str

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": WALLET_CREATE_MESSAGE_TYPE,
            "userPublicKey": self.user_public_key,
        }
