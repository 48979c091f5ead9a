"""
Whirlpool Adapter - instruction assembly for Orca Whirlpools on Solana

Turns liquidity intents into unsigned instruction batches:
- Create splash and concentrated liquidity pools
- Open positions over a price range or the full range
- Increase / decrease liquidity, harvest fees and rewards, close positions
- Discover pools by token pair and positions by mint, owner or pool
- Provision token accounts and wrap native SOL

Nothing is signed or broadcast; callers sign with their own wallet plus
the batch's additional_signers.
"""

from .client import WhirlpoolClient
from .config import EngineDefaults, SharedDefaults, get_config, reload_config, setup_logging
from .types import (
    NativeMintWrappingStrategy,
    WithoutBalance,
    WithBalance,
    LiquidityParam,
    TokenAParam,
    TokenBParam,
    InitializedPool,
    UninitializedPool,
    PoolInfo,
    InstructionBatch,
    CreatePoolInstructions,
    OpenPositionInstructions,
    IncreaseLiquidityInstructions,
    DecreaseLiquidityInstructions,
    HarvestPositionInstructions,
    ClosePositionInstructions,
)
from .errors import (
    ErrorCode,
    WhirlpoolAdapterError,
    RpcError,
    AccountNotFound,
    DecodeMismatch,
    PreconditionViolated,
    QuoteRejected,
    ConfigLockContention,
    ConfigurationError,
)

__all__ = [
    # Client
    "WhirlpoolClient",
    # Config
    "EngineDefaults",
    "SharedDefaults",
    "get_config",
    "reload_config",
    "setup_logging",
    # Types
    "NativeMintWrappingStrategy",
    "WithoutBalance",
    "WithBalance",
    "LiquidityParam",
    "TokenAParam",
    "TokenBParam",
    "InitializedPool",
    "UninitializedPool",
    "PoolInfo",
    "InstructionBatch",
    "CreatePoolInstructions",
    "OpenPositionInstructions",
    "IncreaseLiquidityInstructions",
    "DecreaseLiquidityInstructions",
    "HarvestPositionInstructions",
    "ClosePositionInstructions",
    # Errors
    "ErrorCode",
    "WhirlpoolAdapterError",
    "RpcError",
    "AccountNotFound",
    "DecodeMismatch",
    "PreconditionViolated",
    "QuoteRejected",
    "ConfigLockContention",
    "ConfigurationError",
]

__version__ = "0.1.0"
