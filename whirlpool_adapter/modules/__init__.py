"""
Functional modules for WhirlpoolClient

- PoolModule: Pool discovery and pool creation
- PositionModule: Increase / decrease liquidity, harvest, close
"""

from .pool import PoolModule
from .position import PositionModule

__all__ = [
    "PoolModule",
    "PositionModule",
]
