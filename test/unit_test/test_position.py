"""
Test Position Discovery

Reads positions by mint, by owner wallet and by pool from the in-memory
ledger.
"""

import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair

from whirlpool_adapter.errors import AccountNotFound, DecodeMismatch, ErrorCode
from whirlpool_adapter.infra import AccountReader
from whirlpool_adapter.protocols.whirlpool.constants import (
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
)
from whirlpool_adapter.protocols.whirlpool.pda import (
    get_associated_token_address,
    get_position_address,
)
from whirlpool_adapter.protocols.whirlpool.position import (
    fetch_position,
    fetch_positions_for_owner,
    fetch_positions_in_whirlpool,
)

from fake_ledger import (
    build_position_ledger,
    encode_mint,
    encode_position,
    encode_token_account,
    put_whirlpool_account,
)


def _give_position(ledger, tick_lower_index=-64, tick_upper_index=64, pool=None, token_2022=False):
    """Open one more position in the ledger and hand its NFT to the owner"""
    rpc = ledger["rpc"]
    token_program = TOKEN_2022_PROGRAM_ID if token_2022 else TOKEN_PROGRAM_ID
    mint = Keypair().pubkey()
    rpc.put(mint, token_program, encode_mint(decimals=0, supply=1))
    position, _ = get_position_address(mint)
    put_whirlpool_account(rpc, position, encode_position(
        pool or ledger["pool"], mint, tick_lower_index, tick_upper_index, liquidity=5
    ))
    ata = get_associated_token_address(ledger["owner"], mint, token_program)
    rpc.put(ata, token_program, encode_token_account(mint, ledger["owner"], 1))
    return mint, position


def test_fetch_position():
    """Test a position is read through its NFT mint"""
    print("Testing fetch_position...")

    ledger = build_position_ledger(tick_lower_index=-256, tick_upper_index=512)
    position = fetch_position(AccountReader(ledger["rpc"]), ledger["position_mint"])

    assert position.address == ledger["position"]
    assert position.whirlpool == ledger["pool"]
    assert position.position_mint == ledger["position_mint"]
    assert (position.tick_lower_index, position.tick_upper_index) == (-256, 512)

    print("  fetch_position: PASSED")


def test_fetch_position_missing():
    """Test a mint without a position raises POSITION_NOT_FOUND"""
    print("Testing fetch_position missing...")

    ledger = build_position_ledger()
    mint = Keypair().pubkey()
    with pytest.raises(AccountNotFound) as exc:
        fetch_position(AccountReader(ledger["rpc"]), mint)
    assert exc.value.code == ErrorCode.POSITION_NOT_FOUND
    assert exc.value.address == str(get_position_address(mint)[0])

    # A mint account sitting at the derived address is not a position
    fake_mint = Keypair().pubkey()
    ledger["rpc"].put(get_position_address(fake_mint)[0], TOKEN_PROGRAM_ID, encode_mint())
    with pytest.raises(DecodeMismatch):
        fetch_position(AccountReader(ledger["rpc"]), fake_mint)

    print("  fetch_position missing: PASSED")


def test_fetch_positions_for_owner():
    """Test the owner scan keeps position NFTs under both token programs"""
    print("Testing fetch_positions_for_owner...")

    ledger = build_position_ledger()
    rpc = ledger["rpc"]
    owner = ledger["owner"]

    legacy_mint, legacy_position = _give_position(ledger)
    t22_mint, t22_position = _give_position(ledger, token_2022=True)

    # NFT that is not a position
    other_nft = Keypair().pubkey()
    rpc.put(other_nft, TOKEN_PROGRAM_ID, encode_mint(decimals=0, supply=1))
    rpc.put(
        get_associated_token_address(owner, other_nft, TOKEN_PROGRAM_ID),
        TOKEN_PROGRAM_ID,
        encode_token_account(other_nft, owner, 1),
    )

    # Empty account for a real position the owner no longer holds
    rpc.put(
        get_associated_token_address(owner, ledger["position_mint"], TOKEN_PROGRAM_ID),
        TOKEN_PROGRAM_ID,
        encode_token_account(ledger["position_mint"], owner, 0),
    )

    # Fungible balance
    rpc.put(
        get_associated_token_address(owner, ledger["mint_a"], TOKEN_PROGRAM_ID),
        TOKEN_PROGRAM_ID,
        encode_token_account(ledger["mint_a"], owner, 5_000),
    )

    rpc.calls.clear()
    positions = fetch_positions_for_owner(AccountReader(rpc), owner)

    assert {p.address for p in positions} == {legacy_position, t22_position}
    assert {p.position_mint for p in positions} == {legacy_mint, t22_mint}
    assert rpc.calls == [
        "getTokenAccountsByOwner",
        "getTokenAccountsByOwner",
        "getMultipleAccounts",
    ]

    print("  fetch_positions_for_owner: PASSED")


def test_fetch_positions_for_owner_empty():
    """Test a wallet without NFTs skips the position read"""
    print("Testing fetch_positions_for_owner empty...")

    ledger = build_position_ledger()
    rpc = ledger["rpc"]
    rpc.calls.clear()

    assert fetch_positions_for_owner(AccountReader(rpc), Keypair().pubkey()) == []
    assert "getMultipleAccounts" not in rpc.calls

    print("  fetch_positions_for_owner empty: PASSED")


def test_fetch_positions_in_whirlpool():
    """Test the pool scan filters on the Position layout and the pool address"""
    print("Testing fetch_positions_in_whirlpool...")

    ledger = build_position_ledger()
    _, second = _give_position(ledger, tick_lower_index=-640, tick_upper_index=640)
    _give_position(ledger, pool=Keypair().pubkey())

    positions = fetch_positions_in_whirlpool(AccountReader(ledger["rpc"]), ledger["pool"])

    assert {p.address for p in positions} == {ledger["position"], second}
    assert all(p.whirlpool == ledger["pool"] for p in positions)

    print("  fetch_positions_in_whirlpool: PASSED")


def main():
    """Run all position discovery tests"""
    print("=" * 60)
    print("Position Discovery Tests")
    print("=" * 60)

    tests = [
        test_fetch_position,
        test_fetch_position_missing,
        test_fetch_positions_for_owner,
        test_fetch_positions_for_owner_empty,
        test_fetch_positions_in_whirlpool,
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
