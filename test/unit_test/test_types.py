"""
Test Types Module

Tests for exec_client.types: operations, transport modes, requests,
responses and stats.
"""

import sys
import dataclasses
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
OTHER = "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"
MINT = "So11111111111111111111111111111111111111112"


def test_transport_modes():
    """Test TransportMode wire mapping and bribe requirements"""
    from exec_client.types import TransportMode, wire_transport_mode, NO_BRIBE_MODES

    print("Testing TransportMode...")

    assert wire_transport_mode(TransportMode.FLASH) == "NONCE"
    for mode in TransportMode:
        if mode != TransportMode.FLASH:
            assert wire_transport_mode(mode) == mode.value

    assert NO_BRIBE_MODES == {TransportMode.SIMULATE, TransportMode.VANILLA}
    assert not TransportMode.SIMULATE.requires_bribe
    assert TransportMode.JITO.requires_bribe

    assert TransportMode.parse("zero_slot") == TransportMode.ZERO_SLOT
    try:
        TransportMode.parse("CARRIER_PIGEON")
        assert False, "Should raise for unknown mode"
    except ValueError:
        pass

    print("  TransportMode: PASSED")


def test_operation_wire_format():
    """Operations render camelCase keys with their type tags"""
    from exec_client.types import PumpFunBuy, PumpFunPoolAccounts, TOKEN_PROGRAM_ID

    print("Testing operation wire format...")

    op = PumpFunBuy(
        pool=MINT,
        pool_accounts={"coin_creator": OTHER},
        user=WALLET,
        sol_amount_in=1_000_000,
        token_amount_out=3_400_000_000,
    )
    assert op.pool_accounts == PumpFunPoolAccounts(coin_creator=OTHER)

    wire = op.to_wire()
    assert wire == {
        "executionType": "PUMP_FUN",
        "eventType": "BUY",
        "pool": MINT,
        "poolAccounts": {"coinCreator": OTHER},
        "user": WALLET,
        "solAmountIn": 1_000_000,
        "tokenAmountOut": 3_400_000_000,
        "tokenProgram": TOKEN_PROGRAM_ID,
        "mayhemModeEnabled": False,
    }

    print("  operation wire format: PASSED")


def test_optional_fields_omitted():
    """Unset optional flags are left out; a null coin creator is kept"""
    from exec_client.types import PumpFunSell, PumpFunPoolAccounts

    print("Testing optional field rendering...")

    op = PumpFunSell(
        pool=MINT,
        pool_accounts=PumpFunPoolAccounts(coin_creator=None),
        user=WALLET,
        token_amount_in=10,
        min_sol_amount_out=1,
    )
    wire = op.to_wire()
    assert "closeAssociatedTokenAccount" not in wire
    assert wire["poolAccounts"] == {"coinCreator": None}

    closing = dataclasses.replace(op, close_associated_token_account=True)
    assert closing.to_wire()["closeAssociatedTokenAccount"] is True

    print("  optional field rendering: PASSED")


def test_operations_are_frozen():
    """Operations cannot be mutated once built"""
    from exec_client.types import SystemTransfer

    print("Testing operation immutability...")

    op = SystemTransfer(sender=WALLET, recipient=OTHER, lamports=5)
    try:
        op.lamports = 10
        assert False, "Should not allow mutation"
    except dataclasses.FrozenInstanceError:
        pass

    print("  operation immutability: PASSED")


def test_operation_registry():
    """Every operation class is registered under its own kind"""
    from exec_client.types import (
        OPERATION_TYPES, operation_kind, ExecutionType, EventType, SystemTransfer,
    )

    print("Testing OPERATION_TYPES...")

    assert len(OPERATION_TYPES) == 18
    for kind, cls in OPERATION_TYPES.items():
        assert (cls.execution_type, cls.event_type) == kind

    op = SystemTransfer(sender=WALLET, recipient=OTHER, lamports=5)
    assert operation_kind(op) == (ExecutionType.SYSTEM_TRANSFER, EventType.TRANSFER)
    assert operation_kind(op.to_wire()) == op.kind
    assert operation_kind({"executionType": "RAW_TRANSACTION"}) == (
        ExecutionType.RAW_TRANSACTION, EventType.EXECUTE,
    )
    assert operation_kind({"executionType": "PUMP_FUN", "eventType": "TRANSFER"}) is None
    assert operation_kind({"executionType": "NOPE", "eventType": "BUY"}) is None
    assert operation_kind("PUMP_FUN") is None

    print("  OPERATION_TYPES: PASSED")


def test_raw_transaction_normalization():
    """RawTransaction stores bytes and a tuple of signers"""
    from exec_client.types import RawTransaction

    print("Testing RawTransaction...")

    op = RawTransaction(transaction_bytes=bytearray(b"\x01" * 120), additional_signers=[OTHER])
    assert isinstance(op.transaction_bytes, bytes)
    assert op.additional_signers == (OTHER,)

    wire = op.to_wire()
    assert wire["executionType"] == "RAW_TRANSACTION"
    assert wire["eventType"] == "EXECUTE"
    assert wire["transactionBytes"] == b"\x01" * 120
    assert wire["additionalSigners"] == [OTHER]
    assert "120 bytes" in repr(op)

    print("  RawTransaction: PASSED")


def test_execution_request_wire():
    """Single operations stay un-wrapped; batches keep their order"""
    from exec_client.types import ExecutionRequest, SystemTransfer, TransportMode

    print("Testing ExecutionRequest.to_wire...")

    a = SystemTransfer(sender=WALLET, recipient=OTHER, lamports=1)
    b = SystemTransfer(sender=OTHER, recipient=WALLET, lamports=2)

    single = ExecutionRequest(
        data=a, fee_payer=WALLET, priority_fee_lamports=5000, transport=TransportMode.FLASH,
    ).to_wire()
    assert single["data"]["lamports"] == 1
    assert single["transport"] == "NONCE"
    assert single["feePayer"] == WALLET
    assert single["priorityFeeLamports"] == 5000
    assert "bribeLamports" not in single

    batch = ExecutionRequest(
        data=[a, b, a],
        fee_payer=WALLET,
        priority_fee_lamports=0,
        transport="vanilla",
        bribe_lamports=1000,
    )
    wire = batch.to_wire()
    assert [op["lamports"] for op in wire["data"]] == [1, 2, 1]
    assert wire["transport"] == "VANILLA"
    assert wire["bribeLamports"] == 1000
    assert batch.operations == (a, b, a)

    print("  ExecutionRequest.to_wire: PASSED")


def test_responses():
    """from_wire returns the matching response variant"""
    from exec_client.types import (
        TransactionResponse, SuccessResponse, ErrorResponse, WalletCreationResponse,
        is_success_response, is_error_response,
    )

    print("Testing responses...")

    ok = TransactionResponse.from_wire({
        "success": True,
        "signature": "5" * 88,
        "transport": "SIMULATE",
        "logs": ["Program log: ok"],
        "latency": 12,
    })
    assert isinstance(ok, SuccessResponse)
    assert is_success_response(ok) and not is_error_response(ok)
    assert ok.logs == ["Program log: ok"]
    assert ok.raw["latency"] == 12

    bad = TransactionResponse.from_wire({"success": False, "error": "bribe required", "transport": "JITO"})
    assert isinstance(bad, ErrorResponse)
    assert bad.error == "bribe required"
    assert bad.transport == "JITO"

    for malformed in ({"signature": "x"}, ["success"], None):
        try:
            TransactionResponse.from_wire(malformed)
            assert False, f"Should reject {malformed!r}"
        except ValueError:
            pass

    wallet = WalletCreationResponse.from_wire({
        "success": True,
        "publicKey": WALLET,
        "encryptedSecretKey": "ZW5j",
        "nonce": "bm9uY2U=",
        "ephemeralPublicKey": OTHER,
    })
    assert wallet.public_key == WALLET
    assert wallet.encrypted_secret_key == "ZW5j"
    assert wallet.ephemeral_public_key == OTHER

    print("  responses: PASSED")


def test_client_stats():
    """ClientStats is a frozen snapshot"""
    from exec_client.types import ClientStats

    print("Testing ClientStats...")

    stats = ClientStats(
        requests_sent=3,
        requests_successful=1,
        requests_failed=1,
        average_latency=150.0,
        connected=True,
        connected_since=datetime.now(timezone.utc),
        reconnect_attempts=0,
    )
    assert stats.success_rate == 0.5
    try:
        stats.requests_sent = 4
        assert False, "Should not allow mutation"
    except dataclasses.FrozenInstanceError:
        pass

    print("  ClientStats: PASSED")


def main():
    print("=" * 60)
    print("Types Module Tests")
    print("=" * 60)

    tests = [
        test_transport_modes,
        test_operation_wire_format,
        test_optional_fields_omitted,
        test_operations_are_frozen,
        test_operation_registry,
        test_raw_transaction_normalization,
        test_execution_request_wire,
        test_responses,
        test_client_stats,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
