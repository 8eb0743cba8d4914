"""
Transport mode definitions

A transport mode selects how the execution engine submits a batch.
SIMULATE and VANILLA need no bribe; every other mode is a bribed,
MEV-aware broadcast through a named channel.
"""

from enum import Enum
from typing import Dict, Union


class TransportMode(Enum):
    """Closed set of transport modes"""
    SIMULATE = "SIMULATE"
    VANILLA = "VANILLA"
    NOZOMI = "NOZOMI"
    ZERO_SLOT = "ZERO_SLOT"
    HELIUS_SENDER = "HELIUS_SENDER"
    JITO = "JITO"
    FLASH = "FLASH"
    # Legacy name of FLASH, still accepted by the engine
    NONCE = "NONCE"

    @property
    def requires_bribe(self) -> bool:
        return self not in NO_BRIBE_MODES

    @property
    def wire_name(self) -> str:
        return wire_transport_mode(self)

    @classmethod
    def parse(cls, value: Union["TransportMode", str]) -> "TransportMode":
        """
        Resolve a mode from an enum member or its name (case-insensitive)

        Raises:
            ValueError: If the name is not a known mode
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Invalid transport mode: {value!r}") from None


NO_BRIBE_MODES = frozenset({TransportMode.SIMULATE, TransportMode.VANILLA})

# Client-facing names that the engine knows under another name
_WIRE_ALIASES: Dict[TransportMode, str] = {
    TransportMode.FLASH: "NONCE",
}


def wire_transport_mode(mode: TransportMode) -> str:
    """Name the execution engine expects for a client-facing mode"""
    return _WIRE_ALIASES.get(mode, mode.value)


TRANSPORT_DESCRIPTIONS: Dict[TransportMode, str] = {
    TransportMode.SIMULATE: "Test transactions without broadcasting (free, local simulation)",
    TransportMode.VANILLA: "Standard RPC with SwQOS support (300-800ms)",
    TransportMode.NOZOMI: "Temporal Nozomi low-latency endpoint (100-300ms)",
    TransportMode.ZERO_SLOT: "0Slot specialized endpoint (40-150ms, ultra-fast)",
    TransportMode.HELIUS_SENDER: "Helius sender service (150-400ms, premium reliability)",
    TransportMode.JITO: "Jito MEV-protected transactions (200-500ms, MEV protection)",
    TransportMode.FLASH: "Multi-broadcast to all endpoints in parallel (40-100ms, fastest)",
    TransportMode.NONCE: "Legacy name of FLASH",
}

# Expected latency ranges in milliseconds
TRANSPORT_LATENCY: Dict[TransportMode, Dict[str, Union[int, str]]] = {
    TransportMode.SIMULATE: {"min": 0, "max": 0, "description": "Local simulation only (no broadcast)"},
    TransportMode.VANILLA: {"min": 300, "max": 800, "description": "Standard RPC"},
    TransportMode.NOZOMI: {"min": 100, "max": 300, "description": "Low-latency endpoint"},
    TransportMode.ZERO_SLOT: {"min": 40, "max": 150, "description": "Ultra-fast specialized endpoint"},
    TransportMode.HELIUS_SENDER: {"min": 150, "max": 400, "description": "Premium reliability"},
    TransportMode.JITO: {"min": 200, "max": 500, "description": "MEV-protected transactions"},
    TransportMode.FLASH: {"min": 40, "max": 100, "description": "Parallel multi-broadcast (fastest)"},
    TransportMode.NONCE: {"min": 40, "max": 100, "description": "Parallel multi-broadcast (fastest)"},
}
