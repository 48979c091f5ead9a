"""
Position pipelines: increase / decrease liquidity, harvest, close

Every pipeline follows the same order: validate arguments, derive
addresses, read state, quote, provision token accounts, then emit
create -> protocol instructions -> cleanup as one batch.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ...config import EngineDefaults
from ...errors import PreconditionViolated, DecodeMismatch
from ...infra import AccountReader
from ...types import (
    Mint,
    Position,
    Tick,
    Whirlpool,
    TransferFee,
    LiquidityParam,
    LiquidityDeltaParam,
    WithBalance,
    WithoutBalance,
    DecreaseLiquidityQuote,
    IncreaseLiquidityInstructions,
    DecreaseLiquidityInstructions,
    HarvestPositionInstructions,
    ClosePositionInstructions,
)
from .instructions import (
    build_increase_liquidity_v2_instruction,
    build_decrease_liquidity_v2_instruction,
    build_update_fees_and_rewards_instruction,
    build_collect_fees_v2_instruction,
    build_collect_reward_v2_instruction,
    build_close_position_instruction,
)
from .math import get_tick_array_start_tick_index
from .parsers import parse_mint, parse_position, parse_tick_array, parse_whirlpool
from .pda import get_associated_token_address, get_position_address, get_tick_array_address
from .quote import QuoteAdapter
from .token import get_current_transfer_fee, prepare_token_accounts_instructions

logger = logging.getLogger(__name__)


@dataclass
class _PositionState:
    """Everything read from chain for one position call"""
    position: Position
    whirlpool: Whirlpool
    mint_a: Mint
    mint_b: Mint
    position_mint: Mint
    tick_array_lower: Pubkey
    tick_array_upper: Pubkey
    transfer_fee_a: Optional[TransferFee]
    transfer_fee_b: Optional[TransferFee]
    tick_lower: Optional[Tick] = None
    tick_upper: Optional[Tick] = None
    reward_mints: List[Optional[Mint]] = field(default_factory=list)
    reward_transfer_fees: List[Optional[TransferFee]] = field(default_factory=list)


def _resolve_authority(authority: Optional[Pubkey], defaults: EngineDefaults) -> Pubkey:
    authority = authority or defaults.funder
    if authority == Pubkey.default():
        raise PreconditionViolated.missing_authority("authority")
    return authority


def _load_position_state(
    reader: AccountReader,
    position_mint_address: Pubkey,
    with_ticks: bool = False,
) -> _PositionState:
    """
    Read position, pool, mints and (optionally) tick arrays and reward mints

    Three round trips: position, pool, then everything else batched.
    """
    position_address, _ = get_position_address(position_mint_address)
    raw_position = reader.require(reader.fetch_one(position_address), "position", position_address)
    position = reader.decode(raw_position, parse_position)

    raw_pool = reader.require(reader.fetch_one(position.whirlpool), "whirlpool", position.whirlpool)
    whirlpool = reader.decode(raw_pool, parse_whirlpool)

    lower_start = get_tick_array_start_tick_index(position.tick_lower_index, whirlpool.tick_spacing)
    upper_start = get_tick_array_start_tick_index(position.tick_upper_index, whirlpool.tick_spacing)
    tick_array_lower, _ = get_tick_array_address(position.whirlpool, lower_start)
    tick_array_upper, _ = get_tick_array_address(position.whirlpool, upper_start)
    logger.debug(
        f"Position {position_address}: pool={position.whirlpool}, "
        f"ticks=[{position.tick_lower_index}, {position.tick_upper_index}], "
        f"tick_arrays=[{tick_array_lower}, {tick_array_upper}]"
    )

    addresses = [whirlpool.token_mint_a, whirlpool.token_mint_b, position_mint_address]
    if with_ticks:
        addresses += [tick_array_lower, tick_array_upper]
        addresses += [r.mint for r in whirlpool.reward_infos if r.initialized]
    raws = reader.fetch_many(addresses)

    mints = [
        reader.decode(reader.require(raw, "mint", address), parse_mint)
        for address, raw in zip(addresses[:3], raws[:3])
    ]
    current_epoch = reader.current_epoch()

    state = _PositionState(
        position=position,
        whirlpool=whirlpool,
        mint_a=mints[0],
        mint_b=mints[1],
        position_mint=mints[2],
        tick_array_lower=tick_array_lower,
        tick_array_upper=tick_array_upper,
        transfer_fee_a=get_current_transfer_fee(mints[0], current_epoch),
        transfer_fee_b=get_current_transfer_fee(mints[1], current_epoch),
    )
    if not with_ticks:
        return state

    lower_array = reader.decode(
        reader.require(raws[3], "tick_array", tick_array_lower), parse_tick_array
    )
    upper_array = reader.decode(
        reader.require(raws[4], "tick_array", tick_array_upper), parse_tick_array
    )
    try:
        state.tick_lower = lower_array.get_tick(position.tick_lower_index, whirlpool.tick_spacing)
        state.tick_upper = upper_array.get_tick(position.tick_upper_index, whirlpool.tick_spacing)
    except IndexError as e:
        raise DecodeMismatch(str(e), str(tick_array_lower), "TickArray", original_error=e)

    reward_raws = iter(raws[5:])
    for reward in whirlpool.reward_infos:
        if not reward.initialized:
            state.reward_mints.append(None)
            state.reward_transfer_fees.append(None)
            continue
        reward_mint = reader.decode(reader.require(next(reward_raws), "mint", reward.mint), parse_mint)
        state.reward_mints.append(reward_mint)
        state.reward_transfer_fees.append(get_current_transfer_fee(reward_mint, current_epoch))
    return state


def _position_token_account(state: _PositionState, authority: Pubkey) -> Pubkey:
    return get_associated_token_address(
        authority, state.position.position_mint, state.position_mint.token_program
    )


def _modify_liquidity_accounts(
    state: _PositionState,
    authority: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
) -> dict:
    return dict(
        whirlpool=state.position.whirlpool,
        token_program_a=state.mint_a.token_program,
        token_program_b=state.mint_b.token_program,
        position_authority=authority,
        position=state.position.address,
        position_token_account=_position_token_account(state, authority),
        token_mint_a=state.whirlpool.token_mint_a,
        token_mint_b=state.whirlpool.token_mint_b,
        token_owner_account_a=token_owner_account_a,
        token_owner_account_b=token_owner_account_b,
        token_vault_a=state.whirlpool.token_vault_a,
        token_vault_b=state.whirlpool.token_vault_b,
        tick_array_lower=state.tick_array_lower,
        tick_array_upper=state.tick_array_upper,
    )


def increase_liquidity_instructions(
    reader: AccountReader,
    position_mint_address: Pubkey,
    param: LiquidityDeltaParam,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> IncreaseLiquidityInstructions:
    """
    Build instructions to add liquidity to an existing position

    Args:
        reader: Account reader for this call
        position_mint_address: Position NFT mint
        param: LiquidityParam, TokenAParam or TokenBParam
        slippage_tolerance_bps: Tolerance (defaults.slippage_bps if None)
        authority: Position owner (defaults.funder if None)
        defaults: Engine defaults

    Returns:
        IncreaseLiquidityInstructions including the quote
    """
    defaults = defaults or EngineDefaults()
    authority = _resolve_authority(authority, defaults)
    slippage = defaults.slippage_bps if slippage_tolerance_bps is None else slippage_tolerance_bps
    quotes = QuoteAdapter(slippage)

    state = _load_position_state(reader, position_mint_address)
    quote = quotes.increase(
        param,
        state.whirlpool.sqrt_price,
        state.position.tick_lower_index,
        state.position.tick_upper_index,
        state.transfer_fee_a,
        state.transfer_fee_b,
    )

    token_accounts = prepare_token_accounts_instructions(
        reader,
        authority,
        [
            WithBalance(state.whirlpool.token_mint_a, quote.token_max_a),
            WithBalance(state.whirlpool.token_mint_b, quote.token_max_b),
        ],
        defaults.native_mint_wrapping_strategy,
    )

    instructions: List[Instruction] = list(token_accounts.create_instructions)
    instructions.append(build_increase_liquidity_v2_instruction(
        **_modify_liquidity_accounts(
            state,
            authority,
            token_accounts.token_account_addresses[state.whirlpool.token_mint_a],
            token_accounts.token_account_addresses[state.whirlpool.token_mint_b],
        ),
        liquidity_amount=quote.liquidity_delta,
        token_max_a=quote.token_max_a,
        token_max_b=quote.token_max_b,
    ))
    instructions.extend(token_accounts.cleanup_instructions)

    logger.info(
        f"Increase liquidity on {state.position.address}: delta={quote.liquidity_delta}, "
        f"max_a={quote.token_max_a}, max_b={quote.token_max_b}, {len(instructions)} instructions"
    )

    return IncreaseLiquidityInstructions(
        instructions=instructions,
        additional_signers=token_accounts.additional_signers,
        primary_address=state.position.address,
        quote=quote,
    )


def decrease_liquidity_instructions(
    reader: AccountReader,
    position_mint_address: Pubkey,
    param: LiquidityDeltaParam,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> DecreaseLiquidityInstructions:
    """
    Build instructions to remove liquidity from a position

    Args:
        reader: Account reader for this call
        position_mint_address: Position NFT mint
        param: LiquidityParam, TokenAParam or TokenBParam
        slippage_tolerance_bps: Tolerance (defaults.slippage_bps if None)
        authority: Position owner (defaults.funder if None)
        defaults: Engine defaults

    Returns:
        DecreaseLiquidityInstructions including the quote

    Raises:
        PreconditionViolated: No authority
        AccountNotFound: Position, pool or a mint is missing
        QuoteRejected: Quote math rejected the parameters
    """
    defaults = defaults or EngineDefaults()
    authority = _resolve_authority(authority, defaults)
    slippage = defaults.slippage_bps if slippage_tolerance_bps is None else slippage_tolerance_bps
    quotes = QuoteAdapter(slippage)

    state = _load_position_state(reader, position_mint_address)
    quote = quotes.decrease(
        param,
        state.whirlpool.sqrt_price,
        state.position.tick_lower_index,
        state.position.tick_upper_index,
        state.transfer_fee_a,
        state.transfer_fee_b,
    )

    token_accounts = prepare_token_accounts_instructions(
        reader,
        authority,
        [
            WithoutBalance(state.whirlpool.token_mint_a),
            WithoutBalance(state.whirlpool.token_mint_b),
        ],
        defaults.native_mint_wrapping_strategy,
    )

    instructions: List[Instruction] = list(token_accounts.create_instructions)
    instructions.append(build_decrease_liquidity_v2_instruction(
        **_modify_liquidity_accounts(
            state,
            authority,
            token_accounts.token_account_addresses[state.whirlpool.token_mint_a],
            token_accounts.token_account_addresses[state.whirlpool.token_mint_b],
        ),
        liquidity_amount=quote.liquidity_delta,
        token_min_a=quote.token_min_a,
        token_min_b=quote.token_min_b,
    ))
    instructions.extend(token_accounts.cleanup_instructions)

    logger.info(
        f"Decrease liquidity on {state.position.address}: delta={quote.liquidity_delta}, "
        f"min_a={quote.token_min_a}, min_b={quote.token_min_b}, {len(instructions)} instructions"
    )

    return DecreaseLiquidityInstructions(
        instructions=instructions,
        additional_signers=token_accounts.additional_signers,
        primary_address=state.position.address,
        quote=quote,
    )


def _collect_instructions(
    state: _PositionState,
    authority: Pubkey,
    token_account_addresses: dict,
    collect_fees: bool,
    reward_indexes: List[int],
) -> List[Instruction]:
    instructions = []
    position_token_account = _position_token_account(state, authority)
    whirlpool = state.whirlpool

    if collect_fees:
        instructions.append(build_collect_fees_v2_instruction(
            whirlpool=state.position.whirlpool,
            position_authority=authority,
            position=state.position.address,
            position_token_account=position_token_account,
            token_mint_a=whirlpool.token_mint_a,
            token_mint_b=whirlpool.token_mint_b,
            token_owner_account_a=token_account_addresses[whirlpool.token_mint_a],
            token_vault_a=whirlpool.token_vault_a,
            token_owner_account_b=token_account_addresses[whirlpool.token_mint_b],
            token_vault_b=whirlpool.token_vault_b,
            token_program_a=state.mint_a.token_program,
            token_program_b=state.mint_b.token_program,
        ))

    for index in reward_indexes:
        reward = whirlpool.reward_infos[index]
        instructions.append(build_collect_reward_v2_instruction(
            whirlpool=state.position.whirlpool,
            position_authority=authority,
            position=state.position.address,
            position_token_account=position_token_account,
            reward_owner_account=token_account_addresses[reward.mint],
            reward_mint=reward.mint,
            reward_vault=reward.vault,
            reward_token_program=state.reward_mints[index].token_program,
            reward_index=index,
        ))
    return instructions


def _fees_and_rewards(
    reader: AccountReader,
    quotes: QuoteAdapter,
    state: _PositionState,
):
    fees_quote = quotes.fees(
        state.whirlpool, state.position, state.tick_lower, state.tick_upper,
        state.transfer_fee_a, state.transfer_fee_b,
    )
    rewards_quote = quotes.rewards(
        state.whirlpool, state.position, state.tick_lower, state.tick_upper,
        reader.current_unix_timestamp(), state.reward_transfer_fees,
    )
    return fees_quote, rewards_quote


def _reward_strategies(state: _PositionState, indexes: List[int]) -> List[WithoutBalance]:
    return [WithoutBalance(state.whirlpool.reward_infos[i].mint) for i in indexes]


def harvest_position_instructions(
    reader: AccountReader,
    position_mint_address: Pubkey,
    authority: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> HarvestPositionInstructions:
    """
    Build instructions to collect a position's fees and rewards

    Fees and rewards are refreshed on chain first when the position has
    liquidity. Every initialized reward is collected.
    """
    defaults = defaults or EngineDefaults()
    authority = _resolve_authority(authority, defaults)
    quotes = QuoteAdapter(defaults.slippage_bps)

    state = _load_position_state(reader, position_mint_address, with_ticks=True)
    fees_quote, rewards_quote = _fees_and_rewards(reader, quotes, state)
    reward_indexes = [i for i, mint in enumerate(state.reward_mints) if mint is not None]

    token_accounts = prepare_token_accounts_instructions(
        reader,
        authority,
        [
            WithoutBalance(state.whirlpool.token_mint_a),
            WithoutBalance(state.whirlpool.token_mint_b),
        ] + _reward_strategies(state, reward_indexes),
        defaults.native_mint_wrapping_strategy,
    )

    instructions: List[Instruction] = list(token_accounts.create_instructions)
    if state.position.liquidity > 0:
        instructions.append(build_update_fees_and_rewards_instruction(
            state.position.whirlpool,
            state.position.address,
            state.tick_array_lower,
            state.tick_array_upper,
        ))
    instructions.extend(_collect_instructions(
        state, authority, token_accounts.token_account_addresses, True, reward_indexes
    ))
    instructions.extend(token_accounts.cleanup_instructions)

    logger.info(
        f"Harvest {state.position.address}: fees=({fees_quote.fee_owed_a}, {fees_quote.fee_owed_b}), "
        f"rewards={[r.rewards_owed for r in rewards_quote.rewards]}, {len(instructions)} instructions"
    )

    return HarvestPositionInstructions(
        instructions=instructions,
        additional_signers=token_accounts.additional_signers,
        primary_address=state.position.address,
        fees_quote=fees_quote,
        rewards_quote=rewards_quote,
    )


def close_position_instructions(
    reader: AccountReader,
    position_mint_address: Pubkey,
    slippage_tolerance_bps: Optional[int] = None,
    authority: Optional[Pubkey] = None,
    defaults: Optional[EngineDefaults] = None,
) -> ClosePositionInstructions:
    """
    Build instructions to fully exit and close a position

    Order: token account creation, decrease all liquidity (if any),
    collect fees (if owed), collect each owed reward, close the position,
    token account cleanup.
    """
    defaults = defaults or EngineDefaults()
    authority = _resolve_authority(authority, defaults)
    slippage = defaults.slippage_bps if slippage_tolerance_bps is None else slippage_tolerance_bps
    quotes = QuoteAdapter(slippage)

    state = _load_position_state(reader, position_mint_address, with_ticks=True)
    position = state.position

    if position.liquidity > 0:
        quote = quotes.decrease(
            LiquidityParam(position.liquidity),
            state.whirlpool.sqrt_price,
            position.tick_lower_index,
            position.tick_upper_index,
            state.transfer_fee_a,
            state.transfer_fee_b,
        )
    else:
        quote = DecreaseLiquidityQuote(0, 0, 0, 0, 0)
    fees_quote, rewards_quote = _fees_and_rewards(reader, quotes, state)

    collect_fees = fees_quote.fee_owed_a > 0 or fees_quote.fee_owed_b > 0
    reward_indexes = [
        i for i, mint in enumerate(state.reward_mints)
        if mint is not None and rewards_quote.rewards[i].rewards_owed > 0
    ]

    token_accounts = prepare_token_accounts_instructions(
        reader,
        authority,
        [
            WithoutBalance(state.whirlpool.token_mint_a),
            WithoutBalance(state.whirlpool.token_mint_b),
        ] + _reward_strategies(state, reward_indexes),
        defaults.native_mint_wrapping_strategy,
    )
    addresses = token_accounts.token_account_addresses

    instructions: List[Instruction] = list(token_accounts.create_instructions)
    if quote.liquidity_delta > 0:
        instructions.append(build_decrease_liquidity_v2_instruction(
            **_modify_liquidity_accounts(
                state,
                authority,
                addresses[state.whirlpool.token_mint_a],
                addresses[state.whirlpool.token_mint_b],
            ),
            liquidity_amount=quote.liquidity_delta,
            token_min_a=quote.token_min_a,
            token_min_b=quote.token_min_b,
        ))
    instructions.extend(_collect_instructions(state, authority, addresses, collect_fees, reward_indexes))
    instructions.append(build_close_position_instruction(
        position_authority=authority,
        receiver=authority,
        position=position.address,
        position_mint=position.position_mint,
        position_token_account=_position_token_account(state, authority),
        position_token_program=state.position_mint.token_program,
    ))
    instructions.extend(token_accounts.cleanup_instructions)

    logger.info(
        f"Close position {position.address}: liquidity={position.liquidity}, "
        f"{len(instructions)} instructions, {len(token_accounts.additional_signers)} signers"
    )

    return ClosePositionInstructions(
        instructions=instructions,
        additional_signers=token_accounts.additional_signers,
        primary_address=position.address,
        quote=quote,
        fees_quote=fees_quote,
        rewards_quote=rewards_quote,
    )
