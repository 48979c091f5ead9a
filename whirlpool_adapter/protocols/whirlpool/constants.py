"""
Orca Whirlpool Constants

Program ids, account sizes, Anchor discriminators and tick bounds.
"""

import hashlib

from solders.pubkey import Pubkey


def _anchor_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for instruction name"""
    return hashlib.sha256(f"global:{name}".encode("utf-8")).digest()[:8]


def _anchor_account_discriminator(name: str) -> bytes:
    """Compute Anchor discriminator for account name"""
    return hashlib.sha256(f"account:{name}".encode("utf-8")).digest()[:8]


# Whirlpool Program ID (mainnet and devnet)
WHIRLPOOL_PROGRAM_ID = Pubkey.from_string("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc")

# Token Programs
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")

# Associated Token Program
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")

# System Program
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

# Sysvars
RENT_SYSVAR_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")
CLOCK_SYSVAR_ID = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")

# Memo Program
MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")

# Update authority the program sets on position NFT metadata
WP_NFT_UPDATE_AUTH = Pubkey.from_string("3axbTs2z5GBy6usVbNVoqEgZMng3vZvMnAoX29BFfwhr")

# Wrapped SOL mint
NATIVE_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

# Splash pools use a single fixed tick spacing
SPLASH_POOL_TICK_SPACING = 32896

# Whirlpool tick arrays hold 88 ticks
TICK_ARRAY_SIZE = 88

# Tick bounds
MIN_TICK_INDEX = -443636
MAX_TICK_INDEX = 443636

NUM_REWARDS = 3

# Q64 constant for fixed-point math
Q64 = 2 ** 64
U64_MAX = 2 ** 64 - 1
U128 = 2 ** 128

# Account sizes (bytes)
WHIRLPOOL_SIZE = 653
POSITION_SIZE = 216
TICK_SIZE = 113
TICK_ARRAY_ACCOUNT_SIZE = 9988
FEE_TIER_SIZE = 44
WHIRLPOOLS_CONFIG_SIZE = 108
MINT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165

# Anchor discriminators for accounts
# Computed as sha256("account:<AccountName>")[0:8]
ACCOUNT_DISCRIMINATORS = {
    "Whirlpool": _anchor_account_discriminator("Whirlpool"),
    "Position": _anchor_account_discriminator("Position"),
    "TickArray": _anchor_account_discriminator("TickArray"),
    "FeeTier": _anchor_account_discriminator("FeeTier"),
    "WhirlpoolsConfig": _anchor_account_discriminator("WhirlpoolsConfig"),
}

# Anchor discriminators for instructions
# Computed as sha256("global:<instruction_name>")[0:8]
DISCRIMINATORS = {
    "initialize_pool_v2": _anchor_discriminator("initialize_pool_v2"),
    "initialize_tick_array": _anchor_discriminator("initialize_tick_array"),
    "increase_liquidity_v2": _anchor_discriminator("increase_liquidity_v2"),
    "decrease_liquidity_v2": _anchor_discriminator("decrease_liquidity_v2"),
    "update_fees_and_rewards": _anchor_discriminator("update_fees_and_rewards"),
    "collect_fees_v2": _anchor_discriminator("collect_fees_v2"),
    "collect_reward_v2": _anchor_discriminator("collect_reward_v2"),
    "close_position": _anchor_discriminator("close_position"),
    "close_position_with_token_extensions": _anchor_discriminator(
        "close_position_with_token_extensions"
    ),
    "open_position_with_token_extensions": _anchor_discriminator(
        "open_position_with_token_extensions"
    ),
}

# SPL Token instruction tags
TOKEN_IX_INITIALIZE_ACCOUNT3 = 18
TOKEN_IX_SYNC_NATIVE = 17
TOKEN_IX_CLOSE_ACCOUNT = 9

# Associated Token Program: CreateIdempotent
ATA_IX_CREATE_IDEMPOTENT = 1

# Token-2022 extension types
EXTENSION_TYPE_TRANSFER_FEE_CONFIG = 1
