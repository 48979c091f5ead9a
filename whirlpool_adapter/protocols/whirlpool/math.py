"""
Whirlpool Math Utilities

Tick/price conversion, token <-> liquidity conversion, transfer fees and
the liquidity, fee and reward quotes. All amounts are raw integer units;
sqrt prices are Q64.64 fixed point.
"""

import math
from decimal import Decimal, localcontext
from typing import List, Optional, Sequence, Tuple

from ...types import (
    TransferFee,
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    CollectFeesQuote,
    CollectRewardsQuote,
    RewardQuote,
    Whirlpool,
    Position,
    Tick,
)
from .constants import (
    Q64,
    U64_MAX,
    U128,
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    TICK_ARRAY_SIZE,
    NUM_REWARDS,
)

BPS_DENOMINATOR = 10_000


class QuoteMathError(Exception):
    """Raised when quote math inputs are invalid or overflow"""

    INVALID_TICK_RANGE = "invalid_tick_range"
    OVERFLOW = "overflow"
    INVALID_INPUT = "invalid_input"

    def __init__(self, message: str, kind: str = INVALID_INPUT):
        super().__init__(message)
        self.kind = kind


# Q96 multipliers sqrt(1.0001)^(2^i), one entry per bit of a positive tick
_POSITIVE_TICK_RATIOS_Q96 = [
    79232123823359799118286999567,
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
]

# Q64 multipliers sqrt(1.0001)^(-2^i), one entry per bit of |tick| for negative ticks
_NEGATIVE_TICK_RATIOS_Q64 = [
    18445821805675392311,
    18444899583751176498,
    18443055278223354162,
    18439367220385604838,
    18431993317065449817,
    18417254355718160513,
    18387811781193591352,
    18329067761203520168,
    18212142134806087854,
    17980523815641551639,
    17526086738831147013,
    16651378430235024244,
    15030750278693429944,
    12247334978882834399,
    8131365268884726200,
    3584323654723342297,
    696457651847595233,
    26294789957452057,
    37481735321082,
]


def _check_tick(tick_index: int):
    if tick_index < MIN_TICK_INDEX or tick_index > MAX_TICK_INDEX:
        raise QuoteMathError(
            f"tick must be in [{MIN_TICK_INDEX}, {MAX_TICK_INDEX}], got {tick_index}",
            QuoteMathError.INVALID_TICK_RANGE,
        )


def _sqrt_price_positive_tick(tick_index: int) -> int:
    ratio = _POSITIVE_TICK_RATIOS_Q96[0] if tick_index & 1 else 1 << 96
    for bit in range(1, len(_POSITIVE_TICK_RATIOS_Q96)):
        if tick_index & (1 << bit):
            ratio = (ratio * _POSITIVE_TICK_RATIOS_Q96[bit]) >> 96
    return ratio >> 32


def _sqrt_price_negative_tick(tick_index: int) -> int:
    tick_abs = -tick_index
    ratio = _NEGATIVE_TICK_RATIOS_Q64[0] if tick_abs & 1 else 1 << 64
    for bit in range(1, len(_NEGATIVE_TICK_RATIOS_Q64)):
        if tick_abs & (1 << bit):
            ratio = (ratio * _NEGATIVE_TICK_RATIOS_Q64[bit]) >> 64
    return ratio


def tick_index_to_sqrt_price(tick_index: int) -> int:
    """
    Convert tick index to sqrt price in Q64.64

    Matches the on-chain program bit for bit: positive ticks accumulate in
    Q96 and truncate to Q64, negative ticks accumulate in Q64.

    Args:
        tick_index: Tick index in [MIN_TICK_INDEX, MAX_TICK_INDEX]

    Returns:
        sqrt(1.0001^tick) * 2^64, rounded down
    """
    _check_tick(tick_index)
    if tick_index >= 0:
        return _sqrt_price_positive_tick(tick_index)
    return _sqrt_price_negative_tick(tick_index)


MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673515401279992447579055


def sqrt_price_to_tick_index(sqrt_price: int) -> int:
    """
    Convert sqrt price (Q64.64) to the greatest tick whose sqrt price <= input
    """
    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise QuoteMathError(
            f"sqrt price {sqrt_price} out of bounds",
            QuoteMathError.INVALID_INPUT,
        )
    # Float estimate, then walk to the exact tick
    estimate = math.floor(2 * math.log(sqrt_price / Q64) / math.log(1.0001))
    tick = max(MIN_TICK_INDEX, min(MAX_TICK_INDEX, estimate))

    while tick < MAX_TICK_INDEX and tick_index_to_sqrt_price(tick + 1) <= sqrt_price:
        tick += 1
    while tick > MIN_TICK_INDEX and tick_index_to_sqrt_price(tick) > sqrt_price:
        tick -= 1
    return tick


def price_to_sqrt_price(price: float, decimals_a: int, decimals_b: int) -> int:
    """
    Convert a human price (token B per token A) to sqrt price in Q64.64

    Args:
        price: Price of token A in terms of token B
        decimals_a: Token A decimals
        decimals_b: Token B decimals
    """
    if price <= 0:
        raise QuoteMathError(f"price must be positive, got {price}")
    with localcontext() as ctx:
        ctx.prec = 60
        adjusted = Decimal(str(price)) * (Decimal(10) ** (decimals_b - decimals_a))
        return int(adjusted.sqrt() * Q64)


def sqrt_price_to_price(sqrt_price: int, decimals_a: int, decimals_b: int) -> float:
    """Convert sqrt price (Q64.64) to price of token A in token B"""
    with localcontext() as ctx:
        ctx.prec = 60
        ratio = Decimal(sqrt_price) / Decimal(Q64)
        price = ratio * ratio * (Decimal(10) ** (decimals_a - decimals_b))
        return float(price)


def tick_index_to_price(tick_index: int, decimals_a: int, decimals_b: int) -> float:
    return sqrt_price_to_price(tick_index_to_sqrt_price(tick_index), decimals_a, decimals_b)


def price_to_tick_index(price: float, decimals_a: int, decimals_b: int) -> int:
    return sqrt_price_to_tick_index(price_to_sqrt_price(price, decimals_a, decimals_b))


def get_tick_array_start_tick_index(tick_index: int, tick_spacing: int) -> int:
    """Start index of the tick array containing `tick_index`"""
    ticks_in_array = tick_spacing * TICK_ARRAY_SIZE
    return (tick_index // ticks_in_array) * ticks_in_array


def get_initializable_tick_index(tick_index: int, tick_spacing: int, round_up: Optional[bool] = None) -> int:
    """
    Nearest tick that is a multiple of tick_spacing

    round_up=True/False forces the direction; None rounds to the closest,
    with ties going up.
    """
    remainder = tick_index % tick_spacing
    result = tick_index - remainder
    if round_up is None:
        should_round_up = remainder > 0 and remainder >= tick_spacing // 2
    else:
        should_round_up = round_up and remainder > 0
    return result + tick_spacing if should_round_up else result


def get_full_range_tick_indexes(tick_spacing: int) -> Tuple[int, int]:
    """Lowest and highest initializable ticks for the given spacing"""
    upper = (MAX_TICK_INDEX // tick_spacing) * tick_spacing
    lower = -((-MIN_TICK_INDEX) // tick_spacing) * tick_spacing
    return lower, upper


def order_tick_indexes(tick_index_1: int, tick_index_2: int) -> Tuple[int, int]:
    if tick_index_1 < tick_index_2:
        return tick_index_1, tick_index_2
    return tick_index_2, tick_index_1


def is_initializable_tick_index(tick_index: int, tick_spacing: int) -> bool:
    return tick_index % tick_spacing == 0


def _div_round(numerator: int, denominator: int, round_up: bool) -> int:
    quotient, remainder = divmod(numerator, denominator)
    if round_up and remainder:
        quotient += 1
    return quotient


def _check_u64(value: int, what: str) -> int:
    if value > U64_MAX:
        raise QuoteMathError(f"{what} exceeds u64: {value}", QuoteMathError.OVERFLOW)
    return value


def get_amount_delta_a(sqrt_price_1: int, sqrt_price_2: int, liquidity: int, round_up: bool) -> int:
    """Token A amount for `liquidity` between two sqrt prices"""
    lower, upper = order_tick_indexes(sqrt_price_1, sqrt_price_2)
    if lower == 0:
        raise QuoteMathError("sqrt price must be non-zero")
    numerator = (liquidity * (upper - lower)) << 64
    return _check_u64(_div_round(numerator, upper * lower, round_up), "token A amount")


def get_amount_delta_b(sqrt_price_1: int, sqrt_price_2: int, liquidity: int, round_up: bool) -> int:
    """Token B amount for `liquidity` between two sqrt prices"""
    lower, upper = order_tick_indexes(sqrt_price_1, sqrt_price_2)
    product = liquidity * (upper - lower)
    return _check_u64(_div_round(product, Q64, round_up), "token B amount")


def get_liquidity_from_a(amount_a: int, sqrt_price_lower: int, sqrt_price_upper: int) -> int:
    lower, upper = order_tick_indexes(sqrt_price_lower, sqrt_price_upper)
    if upper == lower:
        return 0
    return (amount_a * lower * upper) // ((upper - lower) << 64)


def get_liquidity_from_b(amount_b: int, sqrt_price_lower: int, sqrt_price_upper: int) -> int:
    lower, upper = order_tick_indexes(sqrt_price_lower, sqrt_price_upper)
    if upper == lower:
        return 0
    return (amount_b << 64) // (upper - lower)


def _validate_range(tick_lower_index: int, tick_upper_index: int) -> Tuple[int, int]:
    _check_tick(tick_lower_index)
    _check_tick(tick_upper_index)
    if tick_lower_index >= tick_upper_index:
        raise QuoteMathError(
            f"invalid tick range [{tick_lower_index}, {tick_upper_index}]",
            QuoteMathError.INVALID_TICK_RANGE,
        )
    return tick_lower_index, tick_upper_index


def get_token_estimates_from_liquidity(
    liquidity: int,
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    round_up: bool,
) -> Tuple[int, int]:
    """
    Token amounts backing `liquidity` in a range at the current price

    Below the range everything is token A, above it everything is token B.
    """
    if liquidity == 0:
        return 0, 0
    sqrt_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_upper = tick_index_to_sqrt_price(tick_upper_index)

    if sqrt_price <= sqrt_lower:
        return get_amount_delta_a(sqrt_lower, sqrt_upper, liquidity, round_up), 0
    if sqrt_price >= sqrt_upper:
        return 0, get_amount_delta_b(sqrt_lower, sqrt_upper, liquidity, round_up)
    return (
        get_amount_delta_a(sqrt_price, sqrt_upper, liquidity, round_up),
        get_amount_delta_b(sqrt_lower, sqrt_price, liquidity, round_up),
    )


# ---------------------------------------------------------------------------
# Transfer fees
# ---------------------------------------------------------------------------

def apply_transfer_fee(amount: int, transfer_fee: Optional[TransferFee]) -> int:
    """Amount received after the transfer fee is withheld"""
    if transfer_fee is None or transfer_fee.fee_bps == 0 or amount == 0:
        return amount
    fee = _div_round(amount * transfer_fee.fee_bps, BPS_DENOMINATOR, True)
    fee = min(fee, transfer_fee.max_fee)
    return amount - fee


def reverse_apply_transfer_fee(amount: int, transfer_fee: Optional[TransferFee]) -> int:
    """Amount to send so that `amount` arrives after the transfer fee"""
    if transfer_fee is None or transfer_fee.fee_bps == 0:
        return amount
    if transfer_fee.fee_bps >= BPS_DENOMINATOR:
        return _check_u64(amount + transfer_fee.max_fee, "transfer amount")
    if amount == 0:
        return 0
    raw = _div_round(amount * BPS_DENOMINATOR, BPS_DENOMINATOR - transfer_fee.fee_bps, True)
    if raw - amount >= transfer_fee.max_fee:
        return _check_u64(amount + transfer_fee.max_fee, "transfer amount")
    return _check_u64(raw, "transfer amount")


def _check_slippage(slippage_tolerance_bps: int):
    if not 0 <= slippage_tolerance_bps <= BPS_DENOMINATOR:
        raise QuoteMathError(f"slippage must be in [0, 10000] bps, got {slippage_tolerance_bps}")


# ---------------------------------------------------------------------------
# Liquidity quotes
# ---------------------------------------------------------------------------

def increase_liquidity_quote(
    liquidity_delta: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    """
    Quote adding `liquidity_delta` to a range

    Estimates round up; maxima add the slippage tolerance and gross up for
    transfer fees.
    """
    _check_slippage(slippage_tolerance_bps)
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))

    est_a, est_b = get_token_estimates_from_liquidity(
        liquidity_delta, sqrt_price, tick_lower, tick_upper, True
    )
    max_a = _div_round(est_a * (BPS_DENOMINATOR + slippage_tolerance_bps), BPS_DENOMINATOR, True)
    max_b = _div_round(est_b * (BPS_DENOMINATOR + slippage_tolerance_bps), BPS_DENOMINATOR, True)

    return IncreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=reverse_apply_transfer_fee(est_a, transfer_fee_a),
        token_est_b=reverse_apply_transfer_fee(est_b, transfer_fee_b),
        token_max_a=reverse_apply_transfer_fee(_check_u64(max_a, "token max A"), transfer_fee_a),
        token_max_b=reverse_apply_transfer_fee(_check_u64(max_b, "token max B"), transfer_fee_b),
    )


def increase_liquidity_quote_a(
    token_amount_a: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    """Quote adding liquidity sized by a token A deposit"""
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))
    amount = apply_transfer_fee(token_amount_a, transfer_fee_a)
    sqrt_lower = tick_index_to_sqrt_price(tick_lower)
    sqrt_upper = tick_index_to_sqrt_price(tick_upper)

    if sqrt_price >= sqrt_upper:
        liquidity = 0
    elif sqrt_price <= sqrt_lower:
        liquidity = get_liquidity_from_a(amount, sqrt_lower, sqrt_upper)
    else:
        liquidity = get_liquidity_from_a(amount, sqrt_price, sqrt_upper)

    return increase_liquidity_quote(
        liquidity, slippage_tolerance_bps, sqrt_price, tick_lower, tick_upper,
        transfer_fee_a, transfer_fee_b,
    )


def increase_liquidity_quote_b(
    token_amount_b: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> IncreaseLiquidityQuote:
    """Quote adding liquidity sized by a token B deposit"""
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))
    amount = apply_transfer_fee(token_amount_b, transfer_fee_b)
    sqrt_lower = tick_index_to_sqrt_price(tick_lower)
    sqrt_upper = tick_index_to_sqrt_price(tick_upper)

    if sqrt_price <= sqrt_lower:
        liquidity = 0
    elif sqrt_price >= sqrt_upper:
        liquidity = get_liquidity_from_b(amount, sqrt_lower, sqrt_upper)
    else:
        liquidity = get_liquidity_from_b(amount, sqrt_lower, sqrt_price)

    return increase_liquidity_quote(
        liquidity, slippage_tolerance_bps, sqrt_price, tick_lower, tick_upper,
        transfer_fee_a, transfer_fee_b,
    )


def decrease_liquidity_quote(
    liquidity_delta: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    """
    Quote removing `liquidity_delta` from a range

    Estimates round down and are net of transfer fees; minima additionally
    subtract the slippage tolerance, so token_min_* <= token_est_*.
    """
    _check_slippage(slippage_tolerance_bps)
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))

    est_a, est_b = get_token_estimates_from_liquidity(
        liquidity_delta, sqrt_price, tick_lower, tick_upper, False
    )
    min_a = est_a * (BPS_DENOMINATOR - slippage_tolerance_bps) // BPS_DENOMINATOR
    min_b = est_b * (BPS_DENOMINATOR - slippage_tolerance_bps) // BPS_DENOMINATOR

    return DecreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=apply_transfer_fee(est_a, transfer_fee_a),
        token_est_b=apply_transfer_fee(est_b, transfer_fee_b),
        token_min_a=apply_transfer_fee(min_a, transfer_fee_a),
        token_min_b=apply_transfer_fee(min_b, transfer_fee_b),
    )


def decrease_liquidity_quote_a(
    token_amount_a: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    """Quote removing liquidity sized by the token A to withdraw"""
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))
    amount = reverse_apply_transfer_fee(token_amount_a, transfer_fee_a)
    sqrt_lower = tick_index_to_sqrt_price(tick_lower)
    sqrt_upper = tick_index_to_sqrt_price(tick_upper)

    if sqrt_price >= sqrt_upper:
        liquidity = 0
    elif sqrt_price <= sqrt_lower:
        liquidity = get_liquidity_from_a(amount, sqrt_lower, sqrt_upper)
    else:
        liquidity = get_liquidity_from_a(amount, sqrt_price, sqrt_upper)

    return decrease_liquidity_quote(
        liquidity, slippage_tolerance_bps, sqrt_price, tick_lower, tick_upper,
        transfer_fee_a, transfer_fee_b,
    )


def decrease_liquidity_quote_b(
    token_amount_b: int,
    slippage_tolerance_bps: int,
    sqrt_price: int,
    tick_index_1: int,
    tick_index_2: int,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> DecreaseLiquidityQuote:
    """Quote removing liquidity sized by the token B to withdraw"""
    tick_lower, tick_upper = _validate_range(*order_tick_indexes(tick_index_1, tick_index_2))
    amount = reverse_apply_transfer_fee(token_amount_b, transfer_fee_b)
    sqrt_lower = tick_index_to_sqrt_price(tick_lower)
    sqrt_upper = tick_index_to_sqrt_price(tick_upper)

    if sqrt_price <= sqrt_lower:
        liquidity = 0
    elif sqrt_price >= sqrt_upper:
        liquidity = get_liquidity_from_b(amount, sqrt_lower, sqrt_upper)
    else:
        liquidity = get_liquidity_from_b(amount, sqrt_lower, sqrt_price)

    return decrease_liquidity_quote(
        liquidity, slippage_tolerance_bps, sqrt_price, tick_lower, tick_upper,
        transfer_fee_a, transfer_fee_b,
    )


# ---------------------------------------------------------------------------
# Fees and rewards
# ---------------------------------------------------------------------------

def _growth_inside(
    tick_current_index: int,
    tick_lower_index: int,
    tick_upper_index: int,
    growth_global: int,
    growth_outside_lower: int,
    growth_outside_upper: int,
) -> int:
    """Growth accumulated inside [lower, upper), wrapping mod 2^128"""
    if tick_current_index < tick_lower_index:
        below = (growth_global - growth_outside_lower) % U128
    else:
        below = growth_outside_lower
    if tick_current_index < tick_upper_index:
        above = growth_outside_upper
    else:
        above = (growth_global - growth_outside_upper) % U128
    return (growth_global - below - above) % U128


def collect_fees_quote(
    whirlpool: Whirlpool,
    position: Position,
    tick_lower: Tick,
    tick_upper: Tick,
    transfer_fee_a: Optional[TransferFee] = None,
    transfer_fee_b: Optional[TransferFee] = None,
) -> CollectFeesQuote:
    """Fees owed to a position, including growth since its last checkpoint"""
    inside_a = _growth_inside(
        whirlpool.tick_current_index, position.tick_lower_index, position.tick_upper_index,
        whirlpool.fee_growth_global_a, tick_lower.fee_growth_outside_a, tick_upper.fee_growth_outside_a,
    )
    inside_b = _growth_inside(
        whirlpool.tick_current_index, position.tick_lower_index, position.tick_upper_index,
        whirlpool.fee_growth_global_b, tick_lower.fee_growth_outside_b, tick_upper.fee_growth_outside_b,
    )
    delta_a = (position.liquidity * ((inside_a - position.fee_growth_checkpoint_a) % U128)) >> 64
    delta_b = (position.liquidity * ((inside_b - position.fee_growth_checkpoint_b) % U128)) >> 64

    fee_owed_a = min(position.fee_owed_a + delta_a, U64_MAX)
    fee_owed_b = min(position.fee_owed_b + delta_b, U64_MAX)

    return CollectFeesQuote(
        fee_owed_a=apply_transfer_fee(fee_owed_a, transfer_fee_a),
        fee_owed_b=apply_transfer_fee(fee_owed_b, transfer_fee_b),
    )


def collect_rewards_quote(
    whirlpool: Whirlpool,
    position: Position,
    tick_lower: Tick,
    tick_upper: Tick,
    current_timestamp: int,
    transfer_fees: Optional[Sequence[Optional[TransferFee]]] = None,
) -> CollectRewardsQuote:
    """
    Rewards owed to a position

    Global reward growth is first advanced to `current_timestamp` using
    each reward's emission rate.
    """
    transfer_fees = list(transfer_fees or [])
    transfer_fees += [None] * (NUM_REWARDS - len(transfer_fees))
    elapsed = max(0, current_timestamp - whirlpool.reward_last_updated_timestamp)

    rewards: List[RewardQuote] = []
    for i in range(NUM_REWARDS):
        if i >= len(whirlpool.reward_infos) or not whirlpool.reward_infos[i].initialized:
            rewards.append(RewardQuote(rewards_owed=0))
            continue
        info = whirlpool.reward_infos[i]

        growth_global = info.growth_global_x64
        if whirlpool.liquidity != 0:
            growth_global = (
                growth_global + info.emissions_per_second_x64 * elapsed // whirlpool.liquidity
            ) % U128

        inside = _growth_inside(
            whirlpool.tick_current_index, position.tick_lower_index, position.tick_upper_index,
            growth_global,
            tick_lower.reward_growths_outside[i],
            tick_upper.reward_growths_outside[i],
        )
        checkpoint = position.reward_infos[i].growth_inside_checkpoint
        delta = (position.liquidity * ((inside - checkpoint) % U128)) >> 64
        owed = min(position.reward_infos[i].amount_owed + delta, U64_MAX)
        rewards.append(RewardQuote(rewards_owed=apply_transfer_fee(owed, transfer_fees[i])))

    return CollectRewardsQuote(rewards=rewards)
