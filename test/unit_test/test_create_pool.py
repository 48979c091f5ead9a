"""
Test Create Pool Pipelines

Runs the splash and concentrated liquidity pool builders against the
in-memory ledger.
"""

import struct
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from whirlpool_adapter.config import EngineDefaults
from whirlpool_adapter.errors import AccountNotFound, ErrorCode, PreconditionViolated
from whirlpool_adapter.infra import AccountReader
from whirlpool_adapter.protocols.whirlpool.constants import (
    DISCRIMINATORS,
    WHIRLPOOL_PROGRAM_ID,
)
from whirlpool_adapter.protocols.whirlpool.create_pool import (
    create_concentrated_liquidity_pool_instructions,
    create_splash_pool_instructions,
)
from whirlpool_adapter.protocols.whirlpool.math import price_to_sqrt_price
from whirlpool_adapter.protocols.whirlpool.pda import get_tick_array_address, get_whirlpool_address
from whirlpool_adapter.protocols.whirlpool.token import order_mints

from fake_ledger import FakeLedgerRpc, put_mint, rent_for


def _setup(decimals_a: int = 6, decimals_b: int = 6):
    rpc = FakeLedgerRpc()
    mint_a, mint_b = order_mints(Keypair().pubkey(), Keypair().pubkey())
    put_mint(rpc, mint_a, decimals=decimals_a)
    put_mint(rpc, mint_b, decimals=decimals_b)
    defaults = EngineDefaults(funder=Keypair().pubkey())
    return rpc, mint_a, mint_b, defaults


def _tick_array_starts(result):
    discriminator = bytes(DISCRIMINATORS["initialize_tick_array"])
    starts = []
    for ix in result.instructions:
        data = bytes(ix.data)
        if data[:8] == discriminator:
            starts.append(struct.unpack_from("<i", data, 8)[0])
    return starts


def test_create_splash_pool():
    """Test splash pool initializes the pool and two tick arrays"""
    print("Testing create_splash_pool_instructions...")

    rpc, mint_a, mint_b, defaults = _setup()
    result = create_splash_pool_instructions(AccountReader(rpc), mint_a, mint_b, 1.0, defaults=defaults)

    expected_pool, _ = get_whirlpool_address(defaults.whirlpools_config, mint_a, mint_b, 32896)
    assert result.pool_address == expected_pool
    assert len(result.instructions) == 3
    assert all(ix.program_id == WHIRLPOOL_PROGRAM_ID for ix in result.instructions)

    init = bytes(result.instructions[0].data)
    assert init[:8] == bytes(DISCRIMINATORS["initialize_pool_v2"])
    assert struct.unpack_from("<H", init, 8)[0] == 32896
    assert int.from_bytes(init[10:26], "little") == 1 << 64

    assert _tick_array_starts(result) == [-2894848, 0]
    tick_array, _ = get_tick_array_address(expected_pool, -2894848)
    assert result.instructions[1].accounts[2].pubkey == tick_array

    assert len(result.additional_signers) == 2
    vaults = {meta.pubkey for meta in result.instructions[0].accounts[7:9]}
    assert vaults == set(result.signer_pubkeys)

    assert result.estimated_cost_lamports == rent_for(653) + 2 * rent_for(165) + 2 * rent_for(9988)

    print("  create_splash_pool_instructions: PASSED")


def test_create_concentrated_pool():
    """Test concentrated pool with tick spacing 64 needs three tick arrays"""
    print("Testing create_concentrated_liquidity_pool_instructions...")

    rpc, mint_a, mint_b, defaults = _setup(decimals_a=9, decimals_b=6)
    result = create_concentrated_liquidity_pool_instructions(
        AccountReader(rpc), mint_a, mint_b, 64, 150.0, defaults=defaults
    )

    init = bytes(result.instructions[0].data)
    assert struct.unpack_from("<H", init, 8)[0] == 64
    assert int.from_bytes(init[10:26], "little") == price_to_sqrt_price(150.0, 9, 6)
    assert result.initial_price == 150.0

    starts = _tick_array_starts(result)
    assert len(starts) == 3
    assert starts[0] == -444928
    assert starts[-1] == 439296

    # Funder signs every instruction that pays rent
    funder_meta = result.instructions[0].accounts[5]
    assert funder_meta.pubkey == defaults.funder and funder_meta.is_signer

    assert result.estimated_cost_lamports == rent_for(653) + 2 * rent_for(165) + 3 * rent_for(9988)

    print("  create_concentrated_liquidity_pool_instructions: PASSED")


def test_tick_arrays_deduplicated():
    """Test coinciding tick array starts are initialized once"""
    print("Testing tick array deduplication...")

    rpc, mint_a, mint_b, defaults = _setup()
    with patch(
        "whirlpool_adapter.protocols.whirlpool.create_pool.get_full_range_tick_indexes",
        return_value=(0, 64),
    ):
        result = create_concentrated_liquidity_pool_instructions(
            AccountReader(rpc), mint_a, mint_b, 64, 1.0, defaults=defaults
        )

    assert _tick_array_starts(result) == [0]
    assert len(result.instructions) == 2
    assert result.estimated_cost_lamports == rent_for(653) + 2 * rent_for(165) + rent_for(9988)

    print("  Tick array deduplication: PASSED")


def test_create_pool_preconditions():
    """Test mint order and funder are checked before any read"""
    print("Testing create pool preconditions...")

    rpc, mint_a, mint_b, defaults = _setup()
    reader = AccountReader(rpc)

    with pytest.raises(PreconditionViolated) as exc:
        create_splash_pool_instructions(reader, mint_b, mint_a, defaults=defaults)
    assert exc.value.code == ErrorCode.MINT_ORDER_INVALID

    with pytest.raises(PreconditionViolated) as exc:
        create_splash_pool_instructions(reader, mint_a, mint_a, defaults=defaults)
    assert exc.value.code == ErrorCode.MINT_ORDER_INVALID

    with pytest.raises(PreconditionViolated) as exc:
        create_splash_pool_instructions(reader, mint_a, mint_b, defaults=EngineDefaults())
    assert exc.value.code == ErrorCode.AUTHORITY_MISSING

    with pytest.raises(PreconditionViolated):
        create_concentrated_liquidity_pool_instructions(reader, mint_a, mint_b, 0, defaults=defaults)

    assert rpc.calls == []

    print("  Create pool preconditions: PASSED")


def test_create_pool_missing_mint():
    """Test a missing mint raises AccountNotFound"""
    print("Testing create pool with missing mint...")

    rpc, mint_a, mint_b, defaults = _setup()
    rpc.remove(mint_b)

    with pytest.raises(AccountNotFound) as exc:
        create_splash_pool_instructions(AccountReader(rpc), mint_a, mint_b, defaults=defaults)
    assert exc.value.code == ErrorCode.MINT_NOT_FOUND
    assert exc.value.address == str(mint_b)

    print("  Create pool with missing mint: PASSED")


def test_explicit_funder_overrides_defaults():
    """Test an explicit funder replaces the default key"""
    print("Testing explicit funder...")

    rpc, mint_a, mint_b, _ = _setup()
    funder = Keypair().pubkey()
    result = create_splash_pool_instructions(AccountReader(rpc), mint_a, mint_b, funder=funder)

    assert result.instructions[0].accounts[5].pubkey == funder
    assert all(ix.accounts[1].pubkey == funder for ix in result.instructions[1:])
    assert funder != Pubkey.default()

    print("  Explicit funder: PASSED")


def main():
    """Run all create pool tests"""
    print("=" * 60)
    print("Create Pool Tests")
    print("=" * 60)

    tests = [
        test_create_splash_pool,
        test_create_concentrated_pool,
        test_tick_arrays_deduplicated,
        test_create_pool_preconditions,
        test_create_pool_missing_mint,
        test_explicit_funder_overrides_defaults,
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
