"""
Whirlpool program-derived addresses

Pure functions; each returns (address, bump).
"""

import struct
from typing import Tuple

from solders.pubkey import Pubkey

from ...errors import ConfigurationError
from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
)


# Runtime limits on program-derived address seeds
MAX_SEEDS = 16
MAX_SEED_LEN = 32


def _find(kind: str, seeds, program_id: Pubkey = WHIRLPOOL_PROGRAM_ID) -> Tuple[Pubkey, int]:
    # solders panics on seeds the runtime rejects, so check them here
    if len(seeds) > MAX_SEEDS:
        raise ConfigurationError.derivation_failed(kind, f"{len(seeds)} seeds, at most {MAX_SEEDS} allowed")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ConfigurationError.derivation_failed(
                kind, f"seed of {len(seed)} bytes, at most {MAX_SEED_LEN} allowed"
            )
    return Pubkey.find_program_address(seeds, program_id)


def get_whirlpool_address(
    whirlpools_config: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    tick_spacing: int,
) -> Tuple[Pubkey, int]:
    """Whirlpool address for a config, ordered mint pair and tick spacing"""
    return _find("whirlpool", [
        b"whirlpool",
        bytes(whirlpools_config),
        bytes(token_mint_a),
        bytes(token_mint_b),
        struct.pack("<H", tick_spacing),
    ])


def get_fee_tier_address(whirlpools_config: Pubkey, tick_spacing: int) -> Tuple[Pubkey, int]:
    return _find("fee_tier", [
        b"fee_tier",
        bytes(whirlpools_config),
        struct.pack("<H", tick_spacing),
    ])


def get_token_badge_address(
    whirlpools_config_extension: Pubkey,
    token_mint: Pubkey,
) -> Tuple[Pubkey, int]:
    return _find("token_badge", [
        b"token_badge",
        bytes(whirlpools_config_extension),
        bytes(token_mint),
    ])


def get_tick_array_address(whirlpool: Pubkey, start_tick_index: int) -> Tuple[Pubkey, int]:
    """
    Tick array address

    The start tick index seed is its decimal string, not a packed integer.
    """
    return _find("tick_array", [
        b"tick_array",
        bytes(whirlpool),
        str(start_tick_index).encode("utf-8"),
    ])


def get_position_address(position_mint: Pubkey) -> Tuple[Pubkey, int]:
    return _find("position", [b"position", bytes(position_mint)])


def get_position_bundle_address(position_bundle_mint: Pubkey) -> Tuple[Pubkey, int]:
    return _find("position_bundle", [b"position_bundle", bytes(position_bundle_mint)])


def get_bundled_position_address(
    position_bundle_mint: Pubkey,
    bundle_index: int,
) -> Tuple[Pubkey, int]:
    return _find("bundled_position", [
        b"bundled_position",
        bytes(position_bundle_mint),
        str(bundle_index).encode("utf-8"),
    ])


def get_oracle_address(whirlpool: Pubkey) -> Tuple[Pubkey, int]:
    return _find("oracle", [b"oracle", bytes(whirlpool)])


def get_whirlpools_config_extension_address(whirlpools_config: Pubkey) -> Tuple[Pubkey, int]:
    return _find("config_extension", [b"config_extension", bytes(whirlpools_config)])


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Pubkey:
    """
    Derive Associated Token Account address

    Args:
        owner: Token account owner
        mint: Token mint
        token_program: Token program (legacy or Token-2022)

    Returns:
        ATA address
    """
    ata, _ = _find(
        "associated_token_account",
        [bytes(owner), bytes(token_program), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return ata
