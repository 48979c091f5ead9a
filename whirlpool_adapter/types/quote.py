"""
Quote type definitions
"""

from dataclasses import dataclass
from typing import List, Union


@dataclass(frozen=True)
class TransferFee:
    """Transfer fee applied when tokens move (Token-2022)"""
    fee_bps: int
    max_fee: int


@dataclass(frozen=True)
class LiquidityParam:
    """Size the operation by liquidity delta"""
    liquidity: int


@dataclass(frozen=True)
class TokenAParam:
    """Size the operation by an amount of token A"""
    amount: int


@dataclass(frozen=True)
class TokenBParam:
    """Size the operation by an amount of token B"""
    amount: int


LiquidityDeltaParam = Union[LiquidityParam, TokenAParam, TokenBParam]


@dataclass(frozen=True)
class IncreaseLiquidityQuote:
    """
    Quote for adding liquidity

    token_est_*: amounts deposited at the current price
    token_max_*: upper bounds after slippage and transfer fees
    """
    liquidity_delta: int
    token_est_a: int
    token_est_b: int
    token_max_a: int
    token_max_b: int


@dataclass(frozen=True)
class DecreaseLiquidityQuote:
    """
    Quote for removing liquidity

    token_est_*: amounts received at the current price
    token_min_*: lower bounds after slippage and transfer fees
    """
    liquidity_delta: int
    token_est_a: int
    token_est_b: int
    token_min_a: int
    token_min_b: int


@dataclass(frozen=True)
class CollectFeesQuote:
    fee_owed_a: int
    fee_owed_b: int


@dataclass(frozen=True)
class RewardQuote:
    rewards_owed: int


@dataclass(frozen=True)
class CollectRewardsQuote:
    rewards: List[RewardQuote]
