"""
Test Program Derived Addresses

Checks every derivation against the seed layout it must use.
"""

import struct
import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from whirlpool_adapter.errors import ConfigurationError, ErrorCode
from whirlpool_adapter.protocols.whirlpool.constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    NATIVE_MINT,
)
from whirlpool_adapter.protocols.whirlpool import pda


def _expected(seeds, program_id=WHIRLPOOL_PROGRAM_ID):
    return Pubkey.find_program_address(seeds, program_id)


def test_whirlpool_address():
    """Test whirlpool seeds: config, mint a, mint b, u16 LE tick spacing"""
    print("Testing whirlpool address...")

    config = Keypair().pubkey()
    mint_a, mint_b = Keypair().pubkey(), Keypair().pubkey()

    address, bump = pda.get_whirlpool_address(config, mint_a, mint_b, 64)
    assert (address, bump) == _expected([
        b"whirlpool", bytes(config), bytes(mint_a), bytes(mint_b), struct.pack("<H", 64),
    ])
    assert 0 <= bump <= 255

    # Deterministic and sensitive to every input
    assert pda.get_whirlpool_address(config, mint_a, mint_b, 64)[0] == address
    assert pda.get_whirlpool_address(config, mint_a, mint_b, 128)[0] != address
    assert pda.get_whirlpool_address(config, mint_b, mint_a, 64)[0] != address

    print("  Whirlpool address: PASSED")


def test_fee_tier_and_badge_addresses():
    """Test fee tier and token badge seeds"""
    print("Testing fee tier / token badge addresses...")

    config = Keypair().pubkey()
    extension = Keypair().pubkey()

    assert pda.get_fee_tier_address(config, 32896) == _expected([
        b"fee_tier", bytes(config), struct.pack("<H", 32896),
    ])
    assert pda.get_token_badge_address(extension, NATIVE_MINT) == _expected([
        b"token_badge", bytes(extension), bytes(NATIVE_MINT),
    ])
    assert pda.get_whirlpools_config_extension_address(config) == _expected([
        b"config_extension", bytes(config),
    ])

    print("  Fee tier / token badge addresses: PASSED")


def test_tick_array_address_uses_decimal_seed():
    """Test tick array start index is seeded as a decimal string"""
    print("Testing tick array address...")

    whirlpool = Keypair().pubkey()

    for start in (0, 5632, -5632, -2894848):
        assert pda.get_tick_array_address(whirlpool, start) == _expected([
            b"tick_array", bytes(whirlpool), str(start).encode(),
        ])

    assert pda.get_tick_array_address(whirlpool, 5632)[0] != pda.get_tick_array_address(whirlpool, -5632)[0]

    print("  Tick array address: PASSED")


def test_position_addresses():
    """Test position, bundle, bundled position and oracle seeds"""
    print("Testing position addresses...")

    mint = Keypair().pubkey()
    whirlpool = Keypair().pubkey()

    assert pda.get_position_address(mint) == _expected([b"position", bytes(mint)])
    assert pda.get_position_bundle_address(mint) == _expected([b"position_bundle", bytes(mint)])
    assert pda.get_bundled_position_address(mint, 42) == _expected([
        b"bundled_position", bytes(mint), b"42",
    ])
    assert pda.get_oracle_address(whirlpool) == _expected([b"oracle", bytes(whirlpool)])

    print("  Position addresses: PASSED")


def test_associated_token_address():
    """Test ATA seeds for both token programs"""
    print("Testing associated token address...")

    owner = Keypair().pubkey()
    mint = Keypair().pubkey()

    legacy = pda.get_associated_token_address(owner, mint)
    assert legacy == Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)], ASSOCIATED_TOKEN_PROGRAM_ID
    )[0]

    token_2022 = pda.get_associated_token_address(owner, mint, TOKEN_2022_PROGRAM_ID)
    assert token_2022 != legacy

    print("  Associated token address: PASSED")


def test_derivation_errors():
    """Test oversized seeds raise ConfigurationError and bad seed types propagate"""
    print("Testing derivation errors...")

    bundle_mint = Keypair().pubkey()
    with pytest.raises(ConfigurationError) as exc:
        pda.get_bundled_position_address(bundle_mint, 10 ** 40)
    assert exc.value.code == ErrorCode.ADDRESS_DERIVATION_FAILED

    with pytest.raises(ConfigurationError):
        pda._find("test", [b"x"] * (pda.MAX_SEEDS + 1))

    # Programming errors are not reported as derivation failures
    with pytest.raises(TypeError):
        pda._find("test", [b"whirlpool", 64])

    print("  Derivation errors: PASSED")


def main():
    """Run all PDA tests"""
    print("=" * 60)
    print("PDA Tests")
    print("=" * 60)

    tests = [
        test_whirlpool_address,
        test_fee_tier_and_badge_addresses,
        test_tick_array_address_uses_decimal_seed,
        test_position_addresses,
        test_associated_token_address,
        test_derivation_errors,
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
