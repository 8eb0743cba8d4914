"""
Response type definitions

A response only says whether the engine accepted or rejected the request.
It does not prove that the action completed on-chain.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping) or "success" not in data:
        raise ValueError(f"Malformed {kind} response: {data!r}")
    return data


@dataclass
class TransactionResponse:
    """
    Base execution response

    Attributes:
        success: Whether the engine accepted the request
        transport: Transport mode echoed by the engine
        logs: Diagnostic log lines (simulation output, program logs)
        raw: The decoded message as received
    """
    success: bool
    transport: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_wire(cls, data: Any) -> "TransactionResponse":
        """
        Decode an engine reply into SuccessResponse or ErrorResponse

        Raises:
            ValueError: If the reply is not a mapping with a success flag
        """
        data = _require_mapping(data, "execution")
        common = {
            "transport": data.get("transport"),
            "logs": list(data.get("logs") or []),
            "raw": dict(data),
        }
        if data.get("success") is True:
            return SuccessResponse(
                success=True,
                signature=data.get("signature"),
                latency=data.get("latency"),
                slot=data.get("slot"),
                commitment=data.get("commitment"),
                **common,
            )
        error = data.get("error")
        return ErrorResponse(
            success=False,
            error=str(error) if error is not None else "Unknown error",
            **common,
        )


@dataclass
class SuccessResponse(TransactionResponse):
    """
    Accepted request

    signature is None for SIMULATE (nothing is broadcast).
    latency is the engine-side execution time in milliseconds.
    """
    signature: Optional[str] = None
    latency: Optional[float] = None
    slot: Optional[int] = None
    commitment: Optional[str] = None

    def __str__(self) -> str:
        sig_display = f"{self.signature[:16]}..." if self.signature else "no signature"
        return f"SuccessResponse({self.transport}, {sig_display})"


@dataclass
class ErrorResponse(TransactionResponse):
    """Rejected request"""
    error: str = ""

    def __str__(self) -> str:
        return f"ErrorResponse({self.transport}, error={self.error})"


def is_success_response(response: TransactionResponse) -> bool:
    return isinstance(response, SuccessResponse)


def is_error_response(response: TransactionResponse) -> bool:
    return isinstance(response, ErrorResponse)


@dataclass
class WalletCreationResponse:
    """
    Newly provisioned managed wallet

    encrypted_secret_key can only be decrypted with the private key matching
    the user public key sent in the request.
    """
    success: bool
    public_key: Optional[str] = None
    encrypted_secret_key: Optional[str] = None
    nonce: Optional[str] = None
    ephemeral_public_key: Optional[str] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_wire(cls, data: Any) -> "WalletCreationResponse":
        data = _require_mapping(data, "wallet creation")
        error = data.get("error")
        return cls(
            success=data.get("success") is True,
            public_key=data.get("publicKey"),
            encrypted_secret_key=data.get("encryptedSecretKey"),
            nonce=data.get("nonce"),
            ephemeral_public_key=data.get("ephemeralPublicKey"),
            error=str(error) if error is not None else None,
            raw=dict(data),
        )
