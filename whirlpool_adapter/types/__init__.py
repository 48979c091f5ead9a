"""
Type definitions for Whirlpool Adapter
"""

from .common import (
    NativeMintWrappingStrategy,
    WithoutBalance,
    WithBalance,
    TokenAccountStrategy,
    RawAccount,
)
from .accounts import (
    EpochFee,
    TransferFeeConfig,
    Mint,
    TokenAccount,
    WhirlpoolRewardInfo,
    Whirlpool,
    PositionRewardInfo,
    Position,
    Tick,
    TickArray,
    FeeTier,
    WhirlpoolsConfig,
)
from .pool import InitializedPool, UninitializedPool, PoolInfo
from .quote import (
    TransferFee,
    LiquidityParam,
    TokenAParam,
    TokenBParam,
    LiquidityDeltaParam,
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    CollectFeesQuote,
    RewardQuote,
    CollectRewardsQuote,
)
from .result import (
    TokenAccountInstructions,
    InstructionBatch,
    CreatePoolInstructions,
    OpenPositionInstructions,
    IncreaseLiquidityInstructions,
    DecreaseLiquidityInstructions,
    HarvestPositionInstructions,
    ClosePositionInstructions,
)

__all__ = [
    # Strategies
    "NativeMintWrappingStrategy",
    "WithoutBalance",
    "WithBalance",
    "TokenAccountStrategy",
    "RawAccount",
    # Accounts
    "EpochFee",
    "TransferFeeConfig",
    "Mint",
    "TokenAccount",
    "WhirlpoolRewardInfo",
    "Whirlpool",
    "PositionRewardInfo",
    "Position",
    "Tick",
    "TickArray",
    "FeeTier",
    "WhirlpoolsConfig",
    # Pools
    "InitializedPool",
    "UninitializedPool",
    "PoolInfo",
    # Quotes
    "TransferFee",
    "LiquidityParam",
    "TokenAParam",
    "TokenBParam",
    "LiquidityDeltaParam",
    "IncreaseLiquidityQuote",
    "DecreaseLiquidityQuote",
    "CollectFeesQuote",
    "RewardQuote",
    "CollectRewardsQuote",
    # Results
    "TokenAccountInstructions",
    "InstructionBatch",
    "CreatePoolInstructions",
    "OpenPositionInstructions",
    "IncreaseLiquidityInstructions",
    "DecreaseLiquidityInstructions",
    "HarvestPositionInstructions",
    "ClosePositionInstructions",
]
