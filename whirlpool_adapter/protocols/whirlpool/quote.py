"""
Quote adapter

Maps a liquidity parameter (liquidity, token A or token B amount) onto the
matching math function and reports math failures as QuoteRejected.
"""

from contextlib import contextmanager
from typing import Optional, Sequence

from ...errors import ErrorCode, QuoteRejected, PreconditionViolated
from ...types import (
    LiquidityParam,
    TokenAParam,
    TokenBParam,
    LiquidityDeltaParam,
    TransferFee,
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    CollectFeesQuote,
    CollectRewardsQuote,
    Whirlpool,
    Position,
    Tick,
)
from . import math as wp_math
from .math import QuoteMathError


@contextmanager
def _quote_errors():
    try:
        yield
    except QuoteMathError as e:
        if e.kind == QuoteMathError.OVERFLOW:
            raise QuoteRejected.overflow(str(e))
        if e.kind == QuoteMathError.INVALID_TICK_RANGE:
            raise QuoteRejected(str(e), ErrorCode.QUOTE_INVALID_TICK_RANGE, e)
        raise QuoteRejected.invalid(str(e), e)


class QuoteAdapter:
    """
    Quote computation for one pipeline call

    Usage:
        quotes = QuoteAdapter(slippage_bps=100)
        quote = quotes.decrease(LiquidityParam(10_000), whirlpool.sqrt_price,
                                position.tick_lower_index, position.tick_upper_index)
    """

    def __init__(self, slippage_bps: int):
        if not 0 <= slippage_bps <= wp_math.BPS_DENOMINATOR:
            raise PreconditionViolated.invalid("slippage_bps", f"{slippage_bps} not in [0, 10000]")
        self.slippage_bps = slippage_bps

    def increase(
        self,
        param: LiquidityDeltaParam,
        sqrt_price: int,
        tick_lower_index: int,
        tick_upper_index: int,
        transfer_fee_a: Optional[TransferFee] = None,
        transfer_fee_b: Optional[TransferFee] = None,
    ) -> IncreaseLiquidityQuote:
        if tick_lower_index >= tick_upper_index:
            raise QuoteRejected.invalid_tick_range(tick_lower_index, tick_upper_index)
        if isinstance(param, LiquidityParam):
            fn, amount = wp_math.increase_liquidity_quote, param.liquidity
        elif isinstance(param, TokenAParam):
            fn, amount = wp_math.increase_liquidity_quote_a, param.amount
        elif isinstance(param, TokenBParam):
            fn, amount = wp_math.increase_liquidity_quote_b, param.amount
        else:
            raise PreconditionViolated.invalid("param", f"unsupported type {type(param).__name__}")

        with _quote_errors():
            return fn(
                amount, self.slippage_bps, sqrt_price, tick_lower_index, tick_upper_index,
                transfer_fee_a, transfer_fee_b,
            )

    def decrease(
        self,
        param: LiquidityDeltaParam,
        sqrt_price: int,
        tick_lower_index: int,
        tick_upper_index: int,
        transfer_fee_a: Optional[TransferFee] = None,
        transfer_fee_b: Optional[TransferFee] = None,
    ) -> DecreaseLiquidityQuote:
        if tick_lower_index >= tick_upper_index:
            raise QuoteRejected.invalid_tick_range(tick_lower_index, tick_upper_index)
        if isinstance(param, LiquidityParam):
            fn, amount = wp_math.decrease_liquidity_quote, param.liquidity
        elif isinstance(param, TokenAParam):
            fn, amount = wp_math.decrease_liquidity_quote_a, param.amount
        elif isinstance(param, TokenBParam):
            fn, amount = wp_math.decrease_liquidity_quote_b, param.amount
        else:
            raise PreconditionViolated.invalid("param", f"unsupported type {type(param).__name__}")

        with _quote_errors():
            return fn(
                amount, self.slippage_bps, sqrt_price, tick_lower_index, tick_upper_index,
                transfer_fee_a, transfer_fee_b,
            )

    def fees(
        self,
        whirlpool: Whirlpool,
        position: Position,
        tick_lower: Tick,
        tick_upper: Tick,
        transfer_fee_a: Optional[TransferFee] = None,
        transfer_fee_b: Optional[TransferFee] = None,
    ) -> CollectFeesQuote:
        with _quote_errors():
            return wp_math.collect_fees_quote(
                whirlpool, position, tick_lower, tick_upper, transfer_fee_a, transfer_fee_b
            )

    def rewards(
        self,
        whirlpool: Whirlpool,
        position: Position,
        tick_lower: Tick,
        tick_upper: Tick,
        current_timestamp: int,
        transfer_fees: Optional[Sequence[Optional[TransferFee]]] = None,
    ) -> CollectRewardsQuote:
        with _quote_errors():
            return wp_math.collect_rewards_quote(
                whirlpool, position, tick_lower, tick_upper, current_timestamp, transfer_fees
            )
