"""
Pool discovery

Looks up Whirlpools for a token pair. Pools whose account does not exist
yet are reported as UninitializedPool with the fee rates a new pool would
get (FeeTier default fee rate, WhirlpoolsConfig default protocol fee rate).
"""

import logging
from typing import List, Optional

from solders.pubkey import Pubkey

from ...config import EngineDefaults
from ...infra import AccountReader, memcmp_filter
from ...types import (
    FeeTier,
    Mint,
    RawAccount,
    InitializedPool,
    UninitializedPool,
    PoolInfo,
    WhirlpoolsConfig,
)
from .constants import (
    ACCOUNT_DISCRIMINATORS,
    FEE_TIER_SIZE,
    SPLASH_POOL_TICK_SPACING,
    WHIRLPOOL_PROGRAM_ID,
)
from .math import sqrt_price_to_price
from .parsers import parse_fee_tier, parse_mint, parse_whirlpool, parse_whirlpools_config
from .pda import get_fee_tier_address, get_whirlpool_address
from .token import order_mints

logger = logging.getLogger(__name__)


def _pool_info(
    reader: AccountReader,
    address: Pubkey,
    raw_pool: Optional[RawAccount],
    fee_tier: FeeTier,
    whirlpools_config: WhirlpoolsConfig,
    mint_a: Mint,
    mint_b: Mint,
) -> PoolInfo:
    if raw_pool is not None:
        whirlpool = reader.decode(raw_pool, parse_whirlpool)
        price = sqrt_price_to_price(whirlpool.sqrt_price, mint_a.decimals, mint_b.decimals)
        return InitializedPool(address=address, data=whirlpool, price=price)

    return UninitializedPool(
        address=address,
        whirlpools_config=whirlpools_config.address,
        tick_spacing=fee_tier.tick_spacing,
        fee_rate=fee_tier.default_fee_rate,
        protocol_fee_rate=whirlpools_config.default_protocol_fee_rate,
        token_mint_a=mint_a.address,
        token_mint_b=mint_b.address,
    )


def fetch_splash_pool(
    reader: AccountReader,
    token_1: Pubkey,
    token_2: Pubkey,
    defaults: Optional[EngineDefaults] = None,
) -> PoolInfo:
    """Splash pool for a token pair; mint order does not matter"""
    return fetch_concentrated_liquidity_pool(reader, token_1, token_2, SPLASH_POOL_TICK_SPACING, defaults)


def fetch_concentrated_liquidity_pool(
    reader: AccountReader,
    token_1: Pubkey,
    token_2: Pubkey,
    tick_spacing: int,
    defaults: Optional[EngineDefaults] = None,
) -> PoolInfo:
    """
    Pool for a token pair and tick spacing; mint order does not matter

    Raises:
        AccountNotFound: Config, fee tier or a mint is missing
        DecodeMismatch: An account does not match its layout
    """
    defaults = defaults or EngineDefaults()
    whirlpools_config_address = defaults.whirlpools_config
    token_a, token_b = order_mints(token_1, token_2)

    pool_address, _ = get_whirlpool_address(whirlpools_config_address, token_a, token_b, tick_spacing)
    fee_tier_address, _ = get_fee_tier_address(whirlpools_config_address, tick_spacing)

    raw_pool, raw_config, raw_fee_tier, raw_a, raw_b = reader.fetch_many(
        [pool_address, whirlpools_config_address, fee_tier_address, token_a, token_b]
    )
    whirlpools_config = reader.decode(
        reader.require(raw_config, "whirlpools_config", whirlpools_config_address),
        parse_whirlpools_config,
    )
    fee_tier = reader.decode(reader.require(raw_fee_tier, "fee_tier", fee_tier_address), parse_fee_tier)
    mint_a = reader.decode(reader.require(raw_a, "mint", token_a), parse_mint)
    mint_b = reader.decode(reader.require(raw_b, "mint", token_b), parse_mint)

    pool = _pool_info(reader, pool_address, raw_pool, fee_tier, whirlpools_config, mint_a, mint_b)
    logger.debug(f"Pool {pool_address} (tick_spacing={tick_spacing}): initialized={pool.initialized}")
    return pool


def fetch_whirlpools_by_token_pair(
    reader: AccountReader,
    token_1: Pubkey,
    token_2: Pubkey,
    defaults: Optional[EngineDefaults] = None,
) -> List[PoolInfo]:
    """
    Every pool the configured WhirlpoolsConfig allows for a token pair

    One entry per FeeTier registered under the config, initialized or not,
    ordered by tick spacing.
    """
    defaults = defaults or EngineDefaults()
    whirlpools_config_address = defaults.whirlpools_config
    token_a, token_b = order_mints(token_1, token_2)

    raw_fee_tiers = reader.fetch_program_accounts(
        WHIRLPOOL_PROGRAM_ID,
        filters=[
            {"dataSize": FEE_TIER_SIZE},
            memcmp_filter(0, ACCOUNT_DISCRIMINATORS["FeeTier"]),
            memcmp_filter(8, bytes(whirlpools_config_address)),
        ],
    )
    fee_tiers = sorted(
        (reader.decode(raw, parse_fee_tier) for raw in raw_fee_tiers),
        key=lambda tier: tier.tick_spacing,
    )
    logger.debug(f"Found {len(fee_tiers)} fee tiers under {whirlpools_config_address}")

    raw_config, raw_a, raw_b = reader.fetch_many([whirlpools_config_address, token_a, token_b])
    whirlpools_config = reader.decode(
        reader.require(raw_config, "whirlpools_config", whirlpools_config_address),
        parse_whirlpools_config,
    )
    mint_a = reader.decode(reader.require(raw_a, "mint", token_a), parse_mint)
    mint_b = reader.decode(reader.require(raw_b, "mint", token_b), parse_mint)

    pool_addresses = [
        get_whirlpool_address(whirlpools_config_address, token_a, token_b, tier.tick_spacing)[0]
        for tier in fee_tiers
    ]
    raw_pools = reader.fetch_many(pool_addresses)

    pools = [
        _pool_info(reader, address, raw_pool, tier, whirlpools_config, mint_a, mint_b)
        for address, raw_pool, tier in zip(pool_addresses, raw_pools, fee_tiers)
    ]
    logger.info(
        f"Token pair {token_a}/{token_b}: {len(pools)} pools, "
        f"{sum(1 for p in pools if p.initialized)} initialized"
    )
    return pools
