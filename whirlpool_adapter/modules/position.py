"""
Position Module

Opens positions, reads them back and runs liquidity operations on
existing positions, addressed by position mint.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..client import WhirlpoolClient

from ..types import (
    LiquidityDeltaParam,
    Position,
    OpenPositionInstructions,
    IncreaseLiquidityInstructions,
    DecreaseLiquidityInstructions,
    HarvestPositionInstructions,
    ClosePositionInstructions,
)
from ..protocols.whirlpool import (
    close_position_instructions,
    decrease_liquidity_instructions,
    harvest_position_instructions,
    increase_liquidity_instructions,
    fetch_position,
    fetch_positions_for_owner,
    fetch_positions_in_whirlpool,
    open_full_range_position_instructions,
    open_position_instructions,
)
from ._address import AddressLike, to_optional_pubkey, to_pubkey

logger = logging.getLogger(__name__)


class PositionModule:
    """
    Position operations

    Pipeline methods return an unsigned instruction batch; the caller signs with
    the position authority plus batch.additional_signers.

    Usage:
        batch = client.positions.open(pool, TokenAParam(1_000_000), 0.9, 1.1)
        batch = client.positions.increase(position_mint, TokenAParam(1_000_000))
        batch = client.positions.decrease(position_mint, LiquidityParam(50_000))
        batch = client.positions.harvest(position_mint)
        batch = client.positions.close(position_mint, slippage_bps=50)
        positions = client.positions.for_owner(wallet)
    """

    def __init__(self, client: "WhirlpoolClient"):
        self._client = client

    def increase(
        self,
        position_mint: AddressLike,
        param: LiquidityDeltaParam,
        slippage_bps: Optional[int] = None,
        authority: Optional[AddressLike] = None,
    ) -> IncreaseLiquidityInstructions:
        return increase_liquidity_instructions(
            self._client.reader,
            to_pubkey(position_mint, "position_mint"),
            param,
            slippage_bps,
            to_optional_pubkey(authority, "authority"),
            self._client.defaults,
        )

    def decrease(
        self,
        position_mint: AddressLike,
        param: LiquidityDeltaParam,
        slippage_bps: Optional[int] = None,
        authority: Optional[AddressLike] = None,
    ) -> DecreaseLiquidityInstructions:
        return decrease_liquidity_instructions(
            self._client.reader,
            to_pubkey(position_mint, "position_mint"),
            param,
            slippage_bps,
            to_optional_pubkey(authority, "authority"),
            self._client.defaults,
        )

    def harvest(
        self,
        position_mint: AddressLike,
        authority: Optional[AddressLike] = None,
    ) -> HarvestPositionInstructions:
        """Collect fees and rewards without touching liquidity"""
        return harvest_position_instructions(
            self._client.reader,
            to_pubkey(position_mint, "position_mint"),
            to_optional_pubkey(authority, "authority"),
            self._client.defaults,
        )

    def close(
        self,
        position_mint: AddressLike,
        slippage_bps: Optional[int] = None,
        authority: Optional[AddressLike] = None,
    ) -> ClosePositionInstructions:
        """Remove all liquidity, collect everything owed and close the position"""
        return close_position_instructions(
            self._client.reader,
            to_pubkey(position_mint, "position_mint"),
            slippage_bps,
            to_optional_pubkey(authority, "authority"),
            self._client.defaults,
        )

    def open(
        self,
        pool: AddressLike,
        param: LiquidityDeltaParam,
        lower_price: float,
        upper_price: float,
        slippage_bps: Optional[int] = None,
        funder: Optional[AddressLike] = None,
    ) -> OpenPositionInstructions:
        return open_position_instructions(
            self._client.reader,
            to_pubkey(pool, "pool"),
            param,
            lower_price,
            upper_price,
            slippage_bps,
            to_optional_pubkey(funder, "funder"),
            self._client.defaults,
        )

    def open_full_range(
        self,
        pool: AddressLike,
        param: LiquidityDeltaParam,
        slippage_bps: Optional[int] = None,
        funder: Optional[AddressLike] = None,
    ) -> OpenPositionInstructions:
        return open_full_range_position_instructions(
            self._client.reader,
            to_pubkey(pool, "pool"),
            param,
            slippage_bps,
            to_optional_pubkey(funder, "funder"),
            self._client.defaults,
        )

    def get(self, position_mint: AddressLike) -> Position:
        return fetch_position(self._client.reader, to_pubkey(position_mint, "position_mint"))

    def for_owner(self, owner: AddressLike) -> List[Position]:
        """Positions whose NFT the wallet holds"""
        return fetch_positions_for_owner(self._client.reader, to_pubkey(owner, "owner"))

    def in_pool(self, pool: AddressLike) -> List[Position]:
        return fetch_positions_in_whirlpool(self._client.reader, to_pubkey(pool, "pool"))
