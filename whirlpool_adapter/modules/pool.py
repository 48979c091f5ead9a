"""
Pool Module

Pool discovery and pool creation for the configured WhirlpoolsConfig.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..client import WhirlpoolClient

from ..types import CreatePoolInstructions, PoolInfo
from ..protocols.whirlpool import (
    create_concentrated_liquidity_pool_instructions,
    create_splash_pool_instructions,
    fetch_concentrated_liquidity_pool,
    fetch_splash_pool,
    fetch_whirlpools_by_token_pair,
)
from ._address import AddressLike, to_optional_pubkey, to_pubkey

logger = logging.getLogger(__name__)


class PoolModule:
    """
    Pool queries and creation

    Usage:
        client = WhirlpoolClient(rpc_url, defaults=EngineDefaults(funder=wallet))

        pool = client.pools.splash(SOL_MINT, USDC_MINT)
        pools = client.pools.by_token_pair(SOL_MINT, USDC_MINT)
        batch = client.pools.create(mint_a, mint_b, tick_spacing=64, initial_price=150.0)
    """

    def __init__(self, client: "WhirlpoolClient"):
        self._client = client

    def splash(self, token_1: AddressLike, token_2: AddressLike) -> PoolInfo:
        """Splash pool for a token pair (either order)"""
        return fetch_splash_pool(
            self._client.reader,
            to_pubkey(token_1, "token_1"),
            to_pubkey(token_2, "token_2"),
            self._client.defaults,
        )

    def concentrated(self, token_1: AddressLike, token_2: AddressLike, tick_spacing: int) -> PoolInfo:
        """Concentrated liquidity pool for a token pair and tick spacing (either order)"""
        return fetch_concentrated_liquidity_pool(
            self._client.reader,
            to_pubkey(token_1, "token_1"),
            to_pubkey(token_2, "token_2"),
            tick_spacing,
            self._client.defaults,
        )

    def by_token_pair(self, token_1: AddressLike, token_2: AddressLike) -> List[PoolInfo]:
        """All pools for a token pair, one per fee tier"""
        return fetch_whirlpools_by_token_pair(
            self._client.reader,
            to_pubkey(token_1, "token_1"),
            to_pubkey(token_2, "token_2"),
            self._client.defaults,
        )

    def create(
        self,
        token_mint_a: AddressLike,
        token_mint_b: AddressLike,
        tick_spacing: Optional[int] = None,
        initial_price: float = 1.0,
        funder: Optional[AddressLike] = None,
    ) -> CreatePoolInstructions:
        """
        Build pool creation instructions

        Args:
            token_mint_a: Token A mint
            token_mint_b: Token B mint
            tick_spacing: Concentrated pool tick spacing; None creates a splash pool
            initial_price: Price of token A in token B
            funder: Rent payer (client defaults if None)

        Raises:
            PreconditionViolated: If the mints are not in canonical order

        Returns:
            CreatePoolInstructions
        """
        mint_a = to_pubkey(token_mint_a, "token_mint_a")
        mint_b = to_pubkey(token_mint_b, "token_mint_b")

        logger.debug(f"Create pool {mint_a}/{mint_b}, tick_spacing={tick_spacing}, price={initial_price}")
        payer = to_optional_pubkey(funder, "funder")
        defaults = self._client.defaults
        if tick_spacing is None:
            return create_splash_pool_instructions(
                self._client.reader, mint_a, mint_b, initial_price, payer, defaults
            )
        return create_concentrated_liquidity_pool_instructions(
            self._client.reader, mint_a, mint_b, tick_spacing, initial_price, payer, defaults
        )
