"""
Open position pipelines

Opens a Token-2022 position NFT in an existing pool and deposits the
quoted liquidity in the same batch. Tick arrays the range needs are
initialized first when they do not exist yet.
"""

import logging
from typing import List, Optional, Tuple

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ...config import EngineDefaults
from ...errors import PreconditionViolated, QuoteRejected
from ...infra import AccountReader
from ...types import (
    LiquidityDeltaParam,
    Mint,
    OpenPositionInstructions,
    WithBalance,
    Whirlpool,
)
from .constants import (
    SPLASH_POOL_TICK_SPACING,
    TICK_ARRAY_ACCOUNT_SIZE,
    TOKEN_2022_PROGRAM_ID,
)
from .instructions import (
    build_increase_liquidity_v2_instruction,
    build_initialize_tick_array_instruction,
    build_open_position_with_token_extensions_instruction,
)
from .math import (
    QuoteMathError,
    get_full_range_tick_indexes,
    get_initializable_tick_index,
    get_tick_array_start_tick_index,
    order_tick_indexes,
    price_to_tick_index,
)
from .parsers import parse_mint, parse_whirlpool
from .pda import get_associated_token_address, get_position_address, get_tick_array_address
from .quote import QuoteAdapter
from .token import get_current_transfer_fee, prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


def _resolve_funder(funder: Optional[Pubkey], defaults: EngineDefaults) -> Pubkey:
    funder = funder or defaults.funder
    if funder == Pubkey.default():
        raise PreconditionViolated.missing_authority("funder")
    return funder


def _load_pool(reader: AccountReader, pool_address: Pubkey) -> Tuple[Whirlpool, Mint, Mint]:
    raw_pool = reader.require(reader.fetch_one(pool_address), "whirlpool", pool_address)
    whirlpool = reader.decode(raw_pool, parse_whirlpool)

    raw_a, raw_b = reader.fetch_many([whirlpool.token_mint_a, whirlpool.token_mint_b])
    mint_a = reader.decode(reader.require(raw_a, "mint", whirlpool.token_mint_a), parse_mint)
    mint_b = reader.decode(reader.require(raw_b, "mint", whirlpool.token_mint_b), parse_mint)
    return whirlpool, mint_a, mint_b


def open_full_range_position_instructions(
    reader: AccountReader,
    pool_address: Pubkey,
    param: LiquidityDeltaParam,
    slippage_tolerance_bps: Optional[int] = None,
    funder: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> OpenPositionInstructions:
    """
    Build instructions to open a position spanning every initializable tick

    Works for splash and concentrated liquidity pools alike. See
    open_position_instructions for arguments and errors.
    """
    defaults = defaults or EngineDefaults()
    funder = _resolve_funder(funder, defaults)

    whirlpool, mint_a, mint_b = _load_pool(reader, pool_address)
    tick_lower_index, tick_upper_index = get_full_range_tick_indexes(whirlpool.tick_spacing)
    return _open_position(
        reader, whirlpool, mint_a, mint_b, tick_lower_index, tick_upper_index,
        param, slippage_tolerance_bps, funder, defaults,
    )


def open_position_instructions(
    reader: AccountReader,
    pool_address: Pubkey,
    param: LiquidityDeltaParam,
    lower_price: float,
    upper_price: float,
    slippage_tolerance_bps: Optional[int] = None,
    funder: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> OpenPositionInstructions:
    """
    Build instructions to open a position over a price range

    The lower price rounds down and the upper price rounds up to the
    nearest initializable tick, so the position covers at least the
    requested range.

    Args:
        reader: Account reader for this call
        pool_address: Initialized Whirlpool
        param: LiquidityParam, TokenAParam or TokenBParam
        lower_price: Lower bound, price of token A in token B
        upper_price: Upper bound, price of token A in token B
        slippage_tolerance_bps: Tolerance (defaults.slippage_bps if None)
        funder: Rent payer and position owner (defaults.funder if None)
        defaults: Engine defaults

    Returns:
        OpenPositionInstructions with the position mint keypair among the
        signers; estimated_cost_lamports is the rent of new tick arrays

    Raises:
        PreconditionViolated: Funder unset, bad prices or a splash pool
        AccountNotFound: Pool or a mint is missing
        QuoteRejected: A price cannot be represented or the quote failed
    """
    defaults = defaults or EngineDefaults()
    funder = _resolve_funder(funder, defaults)
    if lower_price <= 0 or upper_price <= 0:
        raise PreconditionViolated.invalid("price", f"range [{lower_price}, {upper_price}] must be positive")
    if lower_price >= upper_price:
        raise PreconditionViolated.invalid("price", f"lower {lower_price} must be below upper {upper_price}")

    whirlpool, mint_a, mint_b = _load_pool(reader, pool_address)
    if whirlpool.tick_spacing == SPLASH_POOL_TICK_SPACING:
        raise PreconditionViolated.invalid(
            "pool", "splash pools only support full-range positions"
        )

    try:
        lower_tick = price_to_tick_index(lower_price, mint_a.decimals, mint_b.decimals)
        upper_tick = price_to_tick_index(upper_price, mint_a.decimals, mint_b.decimals)
    except QuoteMathError as e:
        raise QuoteRejected.invalid(f"price range [{lower_price}, {upper_price}]: {e}", e)

    full_lower, full_upper = get_full_range_tick_indexes(whirlpool.tick_spacing)
    tick_lower_index = max(get_initializable_tick_index(lower_tick, whirlpool.tick_spacing, False), full_lower)
    tick_upper_index = min(get_initializable_tick_index(upper_tick, whirlpool.tick_spacing, True), full_upper)
    tick_lower_index, tick_upper_index = order_tick_indexes(tick_lower_index, tick_upper_index)

    return _open_position(
        reader, whirlpool, mint_a, mint_b, tick_lower_index, tick_upper_index,
        param, slippage_tolerance_bps, funder, defaults,
    )


def _open_position(
    reader: AccountReader,
    whirlpool: Whirlpool,
    mint_a: Mint,
    mint_b: Mint,
    tick_lower_index: int,
    tick_upper_index: int,
    param: LiquidityDeltaParam,
    slippage_tolerance_bps: Optional[int],
    funder: Pubkey,
    defaults: EngineDefaults,
) -> OpenPositionInstructions:
    slippage = defaults.slippage_bps if slippage_tolerance_bps is None else slippage_tolerance_bps
    quotes = QuoteAdapter(slippage)
    pool_address = whirlpool.address

    current_epoch = reader.current_epoch()
    quote = quotes.increase(
        param,
        whirlpool.sqrt_price,
        tick_lower_index,
        tick_upper_index,
        get_current_transfer_fee(mint_a, current_epoch),
        get_current_transfer_fee(mint_b, current_epoch),
    )

    lower_start = get_tick_array_start_tick_index(tick_lower_index, whirlpool.tick_spacing)
    upper_start = get_tick_array_start_tick_index(tick_upper_index, whirlpool.tick_spacing)
    tick_array_lower, _ = get_tick_array_address(pool_address, lower_start)
    tick_array_upper, _ = get_tick_array_address(pool_address, upper_start)

    position_mint = Keypair()
    position_address, _ = get_position_address(position_mint.pubkey())
    position_token_account = get_associated_token_address(
        funder, position_mint.pubkey(), TOKEN_2022_PROGRAM_ID
    )
    logger.debug(
        f"Open position {position_address} in {pool_address}: "
        f"ticks=[{tick_lower_index}, {tick_upper_index}], "
        f"tick_arrays=[{tick_array_lower}, {tick_array_upper}]"
    )

    token_accounts = prepare_token_accounts_instructions(
        reader,
        funder,
        [
            WithBalance(whirlpool.token_mint_a, quote.token_max_a),
            WithBalance(whirlpool.token_mint_b, quote.token_max_b),
        ],
        defaults.native_mint_wrapping_strategy,
    )

    instructions: List[Instruction] = list(token_accounts.create_instructions)

    tick_arrays = {lower_start: tick_array_lower, upper_start: tick_array_upper}
    starts = sorted(tick_arrays)
    raws = reader.fetch_many([tick_arrays[start] for start in starts])
    missing = [start for start, raw in zip(starts, raws) if raw is None]
    for start_tick_index in missing:
        instructions.append(build_initialize_tick_array_instruction(
            pool_address, funder, tick_arrays[start_tick_index], start_tick_index
        ))

    estimated_cost = 0
    if missing:
        estimated_cost = len(missing) * reader.minimum_balance_for_rent_exemption(TICK_ARRAY_ACCOUNT_SIZE)

    instructions.append(build_open_position_with_token_extensions_instruction(
        funder=funder,
        owner=funder,
        position=position_address,
        position_mint=position_mint.pubkey(),
        position_token_account=position_token_account,
        whirlpool=pool_address,
        tick_lower_index=tick_lower_index,
        tick_upper_index=tick_upper_index,
    ))
    instructions.append(build_increase_liquidity_v2_instruction(
        whirlpool=pool_address,
        token_program_a=mint_a.token_program,
        token_program_b=mint_b.token_program,
        position_authority=funder,
        position=position_address,
        position_token_account=position_token_account,
        token_mint_a=whirlpool.token_mint_a,
        token_mint_b=whirlpool.token_mint_b,
        token_owner_account_a=token_accounts.token_account_addresses[whirlpool.token_mint_a],
        token_owner_account_b=token_accounts.token_account_addresses[whirlpool.token_mint_b],
        token_vault_a=whirlpool.token_vault_a,
        token_vault_b=whirlpool.token_vault_b,
        tick_array_lower=tick_array_lower,
        tick_array_upper=tick_array_upper,
        liquidity_amount=quote.liquidity_delta,
        token_max_a=quote.token_max_a,
        token_max_b=quote.token_max_b,
    ))
    instructions.extend(token_accounts.cleanup_instructions)

    logger.info(
        f"Open position {position_address}: delta={quote.liquidity_delta}, "
        f"{len(missing)} new tick arrays, est. cost {estimated_cost} lamports"
    )

    return OpenPositionInstructions(
        instructions=instructions,
        additional_signers=[position_mint] + token_accounts.additional_signers,
        primary_address=position_address,
        estimated_cost_lamports=estimated_cost,
        quote=quote,
        position_mint=position_mint.pubkey(),
        tick_lower_index=tick_lower_index,
        tick_upper_index=tick_upper_index,
    )
