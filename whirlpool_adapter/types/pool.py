"""
Pool discovery result types
"""

from dataclasses import dataclass
from typing import Union

from solders.pubkey import Pubkey

from .accounts import Whirlpool


@dataclass(frozen=True)
class InitializedPool:
    """
    Pool that exists on chain

    Attributes:
        address: Whirlpool address
        data: Decoded Whirlpool account
        price: Price of token A in token B, adjusted for decimals
    """
    address: Pubkey
    data: Whirlpool
    price: float

    initialized = True

    @property
    def tick_spacing(self) -> int:
        return self.data.tick_spacing

    @property
    def fee_rate(self) -> int:
        return self.data.fee_rate

    @property
    def token_mint_a(self) -> Pubkey:
        return self.data.token_mint_a

    @property
    def token_mint_b(self) -> Pubkey:
        return self.data.token_mint_b

    def __repr__(self) -> str:
        return f"InitializedPool({self.address}, tick_spacing={self.tick_spacing}, price={self.price})"


@dataclass(frozen=True)
class UninitializedPool:
    """
    Pool address whose account does not exist yet

    Fee rates come from the FeeTier default and the WhirlpoolsConfig
    default protocol fee rate.
    """
    address: Pubkey
    whirlpools_config: Pubkey
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    token_mint_a: Pubkey
    token_mint_b: Pubkey

    initialized = False

    def __repr__(self) -> str:
        return f"UninitializedPool({self.address}, tick_spacing={self.tick_spacing})"


PoolInfo = Union[InitializedPool, UninitializedPool]
