"""
Orca Whirlpools instruction assembly

Builds unsigned instruction batches for the Whirlpool program:
- Pool creation (splash and concentrated liquidity) with tick arrays
- Open positions (price range or full range) with a Token-2022 NFT
- Increase / decrease liquidity, harvest, close position
- Token account provisioning with native SOL wrapping
- Pool discovery by token pair, position discovery by mint, owner or pool
"""

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    NATIVE_MINT,
    SPLASH_POOL_TICK_SPACING,
    TICK_ARRAY_SIZE,
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
)
from .pda import (
    get_whirlpool_address,
    get_fee_tier_address,
    get_token_badge_address,
    get_tick_array_address,
    get_position_address,
    get_position_bundle_address,
    get_bundled_position_address,
    get_oracle_address,
    get_whirlpools_config_extension_address,
    get_associated_token_address,
)
from .token import (
    order_mints,
    get_current_transfer_fee,
    prepare_token_accounts_instructions,
)
from .quote import QuoteAdapter
from .create_pool import (
    create_splash_pool_instructions,
    create_concentrated_liquidity_pool_instructions,
)
from .open_position import (
    open_position_instructions,
    open_full_range_position_instructions,
)
from .liquidity import (
    increase_liquidity_instructions,
    decrease_liquidity_instructions,
    harvest_position_instructions,
    close_position_instructions,
)
from .pool import (
    fetch_splash_pool,
    fetch_concentrated_liquidity_pool,
    fetch_whirlpools_by_token_pair,
)
from .position import (
    fetch_position,
    fetch_positions_for_owner,
    fetch_positions_in_whirlpool,
)

__all__ = [
    # Constants
    "WHIRLPOOL_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "NATIVE_MINT",
    "SPLASH_POOL_TICK_SPACING",
    "TICK_ARRAY_SIZE",
    "MIN_TICK_INDEX",
    "MAX_TICK_INDEX",
    # Addresses
    "get_whirlpool_address",
    "get_fee_tier_address",
    "get_token_badge_address",
    "get_tick_array_address",
    "get_position_address",
    "get_position_bundle_address",
    "get_bundled_position_address",
    "get_oracle_address",
    "get_whirlpools_config_extension_address",
    "get_associated_token_address",
    # Token accounts
    "order_mints",
    "get_current_transfer_fee",
    "prepare_token_accounts_instructions",
    # Quotes
    "QuoteAdapter",
    # Pipelines
    "create_splash_pool_instructions",
    "create_concentrated_liquidity_pool_instructions",
    "open_position_instructions",
    "open_full_range_position_instructions",
    "increase_liquidity_instructions",
    "decrease_liquidity_instructions",
    "harvest_position_instructions",
    "close_position_instructions",
    # Discovery
    "fetch_splash_pool",
    "fetch_concentrated_liquidity_pool",
    "fetch_whirlpools_by_token_pair",
    "fetch_position",
    "fetch_positions_for_owner",
    "fetch_positions_in_whirlpool",
]
