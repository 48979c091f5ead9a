"""
Create pool pipelines

Builds the instructions to initialize a Whirlpool and the tick arrays
covering the full range and the initial price.
"""

import logging
from typing import Dict, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ...config import EngineDefaults
from ...errors import PreconditionViolated, QuoteRejected
from ...infra import AccountReader
from ...types import CreatePoolInstructions
from .constants import (
    SPLASH_POOL_TICK_SPACING,
    TICK_ARRAY_ACCOUNT_SIZE,
    TOKEN_ACCOUNT_SIZE,
    WHIRLPOOL_SIZE,
)
from .instructions import (
    build_initialize_pool_v2_instruction,
    build_initialize_tick_array_instruction,
)
from .math import (
    QuoteMathError,
    get_full_range_tick_indexes,
    get_tick_array_start_tick_index,
    price_to_sqrt_price,
    sqrt_price_to_tick_index,
)
from .parsers import parse_mint
from .pda import (
    get_fee_tier_address,
    get_tick_array_address,
    get_token_badge_address,
    get_whirlpool_address,
)

logger = logging.getLogger(__name__)


def create_splash_pool_instructions(
    reader: AccountReader,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    initial_price: float = 1.0,
    funder: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> CreatePoolInstructions:
    """
    Build instructions to create a splash pool (fixed tick spacing)

    See create_concentrated_liquidity_pool_instructions.
    """
    return create_concentrated_liquidity_pool_instructions(
        reader,
        token_mint_a,
        token_mint_b,
        SPLASH_POOL_TICK_SPACING,
        initial_price,
        funder,
        defaults,
    )


def create_concentrated_liquidity_pool_instructions(
    reader: AccountReader,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    tick_spacing: int,
    initial_price: float = 1.0,
    funder: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> CreatePoolInstructions:
    """
    Build instructions to create a concentrated liquidity pool

    Args:
        reader: Account reader for this call
        token_mint_a: First mint; must sort byte-wise before token_mint_b
        token_mint_b: Second mint
        tick_spacing: Pool tick spacing (must have a FeeTier)
        initial_price: Price of token A in token B
        funder: Rent payer (defaults.funder if None)
        defaults: Engine defaults (EngineDefaults() if None)

    Returns:
        CreatePoolInstructions with one initialize_pool_v2 instruction, one
        initialize_tick_array instruction per distinct tick array start,
        the two vault keypairs as signers and the estimated rent cost

    Raises:
        PreconditionViolated: Funder unset or mints not in canonical order
        AccountNotFound: A mint does not exist
        QuoteRejected: Initial price cannot be represented
    """
    defaults = defaults or EngineDefaults()
    funder = funder or defaults.funder

    # Validated before any network read
    if funder == Pubkey.default():
        raise PreconditionViolated.missing_authority("funder")
    if bytes(token_mint_a) >= bytes(token_mint_b):
        raise PreconditionViolated.mint_order(str(token_mint_a), str(token_mint_b))
    if tick_spacing <= 0 or tick_spacing > 0xFFFF:
        raise PreconditionViolated.invalid("tick_spacing", f"{tick_spacing} not in [1, 65535]")

    raw_a, raw_b = reader.fetch_many([token_mint_a, token_mint_b])
    mint_a = reader.decode(reader.require(raw_a, "mint", token_mint_a), parse_mint)
    mint_b = reader.decode(reader.require(raw_b, "mint", token_mint_b), parse_mint)

    try:
        initial_sqrt_price = price_to_sqrt_price(initial_price, mint_a.decimals, mint_b.decimals)
        initial_tick_index = sqrt_price_to_tick_index(initial_sqrt_price)
    except QuoteMathError as e:
        raise QuoteRejected.invalid(f"initial price {initial_price}: {e}", e)

    whirlpools_config = defaults.whirlpools_config
    pool_address, _ = get_whirlpool_address(whirlpools_config, token_mint_a, token_mint_b, tick_spacing)
    fee_tier, _ = get_fee_tier_address(whirlpools_config, tick_spacing)
    token_badge_a, _ = get_token_badge_address(defaults.whirlpools_config_extension, token_mint_a)
    token_badge_b, _ = get_token_badge_address(defaults.whirlpools_config_extension, token_mint_b)
    logger.debug(
        f"Create pool: pool={pool_address}, fee_tier={fee_tier}, "
        f"sqrt_price={initial_sqrt_price}, tick={initial_tick_index}"
    )

    token_vault_a = Keypair()
    token_vault_b = Keypair()

    instructions = [
        build_initialize_pool_v2_instruction(
            whirlpools_config=whirlpools_config,
            token_mint_a=token_mint_a,
            token_mint_b=token_mint_b,
            token_badge_a=token_badge_a,
            token_badge_b=token_badge_b,
            funder=funder,
            whirlpool=pool_address,
            token_vault_a=token_vault_a.pubkey(),
            token_vault_b=token_vault_b.pubkey(),
            fee_tier=fee_tier,
            token_program_a=mint_a.token_program,
            token_program_b=mint_b.token_program,
            tick_spacing=tick_spacing,
            initial_sqrt_price=initial_sqrt_price,
        )
    ]

    tick_lower_index, tick_upper_index = get_full_range_tick_indexes(tick_spacing)
    start_indexes = sorted({
        get_tick_array_start_tick_index(tick_lower_index, tick_spacing),
        get_tick_array_start_tick_index(tick_upper_index, tick_spacing),
        get_tick_array_start_tick_index(initial_tick_index, tick_spacing),
    })

    for start_tick_index in start_indexes:
        tick_array, _ = get_tick_array_address(pool_address, start_tick_index)
        instructions.append(
            build_initialize_tick_array_instruction(pool_address, funder, tick_array, start_tick_index)
        )

    rent: Dict[int, int] = {}
    for size in (WHIRLPOOL_SIZE, TOKEN_ACCOUNT_SIZE, TICK_ARRAY_ACCOUNT_SIZE):
        rent[size] = reader.minimum_balance_for_rent_exemption(size)
    estimated_cost = (
        rent[WHIRLPOOL_SIZE]
        + 2 * rent[TOKEN_ACCOUNT_SIZE]
        + len(start_indexes) * rent[TICK_ARRAY_ACCOUNT_SIZE]
    )

    logger.info(
        f"Create pool {pool_address}: {len(instructions)} instructions, "
        f"{len(start_indexes)} tick arrays, est. cost {estimated_cost} lamports"
    )

    return CreatePoolInstructions(
        instructions=instructions,
        additional_signers=[token_vault_a, token_vault_b],
        primary_address=pool_address,
        estimated_cost_lamports=estimated_cost,
        initial_price=initial_price,
    )
