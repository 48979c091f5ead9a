"""
Test WhirlpoolClient

Tests the client facade, its modules and how it resolves defaults.
"""

import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair

from whirlpool_adapter import (
    EngineDefaults,
    SharedDefaults,
    WhirlpoolClient,
)
from whirlpool_adapter.errors import ConfigLockContention, ErrorCode, PreconditionViolated
from whirlpool_adapter.infra import RpcClient
from whirlpool_adapter.types import LiquidityParam, UninitializedPool
from whirlpool_adapter.protocols.whirlpool.math import price_to_sqrt_price
from whirlpool_adapter.protocols.whirlpool.pda import get_fee_tier_address
from whirlpool_adapter.protocols.whirlpool.token import order_mints

from fake_ledger import (
    FakeLedgerRpc,
    build_position_ledger,
    encode_fee_tier,
    encode_whirlpools_config,
    put_mint,
    put_whirlpool_account,
)


def test_client_init():
    """Test client construction and lazy modules"""
    print("Testing WhirlpoolClient init...")

    client = WhirlpoolClient("https://api.mainnet-beta.solana.com", defaults=EngineDefaults())
    assert isinstance(client.rpc, RpcClient)
    assert client.reader.rpc is client.rpc
    assert client.pools is client.pools
    assert client.positions is client.positions
    assert "api.mainnet-beta.solana.com" in repr(client)

    print("  WhirlpoolClient init: PASSED")


def test_client_close_ownership():
    """Test the client only closes an RPC client it created"""
    print("Testing WhirlpoolClient close...")

    with patch.object(RpcClient, "close") as close:
        with WhirlpoolClient("https://api.mainnet-beta.solana.com", defaults=EngineDefaults()):
            pass
        close.assert_called_once()

    rpc = Mock()
    rpc.endpoint = "https://shared.example.com"
    with WhirlpoolClient(rpc=rpc, defaults=EngineDefaults()):
        pass
    rpc.close.assert_not_called()

    print("  WhirlpoolClient close: PASSED")


def test_client_shared_defaults():
    """Test SharedDefaults are snapshotted on every access"""
    print("Testing WhirlpoolClient shared defaults...")

    shared = SharedDefaults(EngineDefaults(slippage_bps=10))
    client = WhirlpoolClient(rpc=FakeLedgerRpc(), defaults=shared)

    assert client.defaults.slippage_bps == 10
    shared.update(slippage_bps=75)
    assert client.defaults.slippage_bps == 75

    shared._lock.acquire()
    try:
        with pytest.raises(ConfigLockContention):
            client.defaults
    finally:
        shared._lock.release()

    print("  WhirlpoolClient shared defaults: PASSED")


def test_pool_module_lookup():
    """Test pool lookup through the client accepts string addresses"""
    print("Testing client.pools.splash...")

    rpc = FakeLedgerRpc()
    config = Keypair().pubkey()
    mint_a, mint_b = order_mints(Keypair().pubkey(), Keypair().pubkey())
    put_mint(rpc, mint_a)
    put_mint(rpc, mint_b)
    put_whirlpool_account(rpc, config, encode_whirlpools_config(300))
    fee_tier, _ = get_fee_tier_address(config, 32896)
    put_whirlpool_account(rpc, fee_tier, encode_fee_tier(config, 32896, 10000))

    client = WhirlpoolClient(rpc=rpc, defaults=EngineDefaults(whirlpools_config=config))
    pool = client.pools.splash(str(mint_b), str(mint_a))

    assert isinstance(pool, UninitializedPool)
    assert pool.token_mint_a == mint_a

    with pytest.raises(PreconditionViolated):
        client.pools.splash("not-an-address", str(mint_a))

    print("  client.pools.splash: PASSED")


def test_pool_module_create_keeps_mint_order():
    """Test create passes the pair through and rejects an unsorted one"""
    print("Testing client.pools.create...")

    rpc = FakeLedgerRpc()
    mint_a, mint_b = order_mints(Keypair().pubkey(), Keypair().pubkey())
    put_mint(rpc, mint_a)
    put_mint(rpc, mint_b)
    client = WhirlpoolClient(rpc=rpc, defaults=EngineDefaults(funder=Keypair().pubkey()))

    with pytest.raises(PreconditionViolated) as exc:
        client.pools.create(str(mint_b), str(mint_a), tick_spacing=64, initial_price=4.0)
    assert exc.value.code == ErrorCode.MINT_ORDER_INVALID
    assert rpc.calls == []

    result = client.pools.create(str(mint_a), str(mint_b), tick_spacing=64, initial_price=4.0)
    assert result.initial_price == 4.0
    init = bytes(result.instructions[0].data)
    assert int.from_bytes(init[10:26], "little") == price_to_sqrt_price(4.0, 6, 6)
    assert result.instructions[0].accounts[1].pubkey == mint_a

    splash = client.pools.create(mint_a, mint_b)
    assert len(splash.instructions) == 3

    print("  client.pools.create: PASSED")


def test_position_module():
    """Test position operations through the client"""
    print("Testing client.positions...")

    ledger = build_position_ledger(fee_owed=(1, 1))
    client = WhirlpoolClient(rpc=ledger["rpc"], defaults=EngineDefaults(funder=ledger["owner"]))
    position_mint = str(ledger["position_mint"])

    increase = client.positions.increase(position_mint, LiquidityParam(10_000))
    assert increase.primary_address == ledger["position"]

    decrease = client.positions.decrease(position_mint, LiquidityParam(10_000), slippage_bps=0)
    assert decrease.quote.token_min_a == decrease.quote.token_est_a

    harvest = client.positions.harvest(position_mint)
    assert harvest.fees_quote.fee_owed_a == 1

    other_authority = Keypair().pubkey()
    close = client.positions.close(position_mint, authority=str(other_authority))
    assert close.instructions[-1].accounts[0].pubkey == other_authority

    print("  client.positions: PASSED")


def test_position_module_open_and_read():
    """Test opening and reading positions through the client"""
    print("Testing client.positions.open...")

    ledger = build_position_ledger()
    client = WhirlpoolClient(rpc=ledger["rpc"], defaults=EngineDefaults(funder=ledger["owner"]))
    pool = str(ledger["pool"])

    ranged = client.positions.open(pool, LiquidityParam(10_000), 900.0, 1100.0, slippage_bps=0)
    assert (ranged.tick_lower_index, ranged.tick_upper_index) == (-1088, 960)
    assert ranged.quote.token_max_a == ranged.quote.token_est_a

    funder = Keypair().pubkey()
    full = client.positions.open_full_range(pool, LiquidityParam(10_000), funder=str(funder))
    assert full.instructions[0].accounts[0].pubkey == funder
    assert full.position_mint != ranged.position_mint

    position = client.positions.get(str(ledger["position_mint"]))
    assert position.address == ledger["position"]
    assert [p.address for p in client.positions.in_pool(pool)] == [ledger["position"]]
    assert client.positions.for_owner(str(ledger["owner"])) == []

    with pytest.raises(PreconditionViolated):
        client.positions.get("not-an-address")

    print("  client.positions.open: PASSED")


def main():
    """Run all client tests"""
    print("=" * 60)
    print("WhirlpoolClient Tests")
    print("=" * 60)

    tests = [
        test_client_init,
        test_client_close_ownership,
        test_client_shared_defaults,
        test_pool_module_lookup,
        test_pool_module_create_keeps_mint_order,
        test_position_module,
        test_position_module_open_and_read,
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
