"""
WhirlpoolClient - entry point for Whirlpool instruction assembly

Wires an RpcClient, an AccountReader and a set of EngineDefaults into the
pool and position modules. Nothing is signed or sent.
"""

from __future__ import annotations

from typing import List, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .modules.pool import PoolModule
    from .modules.position import PositionModule

from .config import EngineDefaults, SharedDefaults
from .infra import AccountReader, RpcClient, RpcClientConfig


class WhirlpoolClient:
    """
    Whirlpool client

    Provides access to operations through functional modules:
    - pools: Pool discovery and creation
    - positions: Increase / decrease liquidity, harvest, close

    Usage:
        from solders.pubkey import Pubkey

        client = WhirlpoolClient(
            rpc_url="https://api.mainnet-beta.solana.com",
            defaults=EngineDefaults.for_network("mainnet", funder=wallet),
        )

        pools = client.pools.by_token_pair(SOL_MINT, USDC_MINT)
        batch = client.positions.close(position_mint)

        # Or share one mutable default set between clients
        shared = SharedDefaults(EngineDefaults(funder=wallet))
        client = WhirlpoolClient(rpc=existing_rpc, defaults=shared)
    """

    def __init__(
        self,
        rpc_url: Union[str, List[str], None] = None,
        rpc: Optional[RpcClient] = None,
        defaults: Union[EngineDefaults, SharedDefaults, None] = None,
        rpc_config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize WhirlpoolClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs (SOLANA_RPC_URL if both are None)
            rpc: Existing RpcClient; takes precedence over rpc_url
            defaults: EngineDefaults, SharedDefaults, or None for the environment defaults
            rpc_config: Optional RPC configuration when building the RpcClient
        """
        self._owns_rpc = rpc is None
        self._rpc = rpc if rpc is not None else RpcClient(rpc_url, config=rpc_config)
        self._reader = AccountReader(self._rpc)
        self._defaults = defaults if defaults is not None else EngineDefaults.from_config()

        self._pools: Optional["PoolModule"] = None
        self._positions: Optional["PositionModule"] = None

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def reader(self) -> AccountReader:
        """Access to account reader"""
        return self._reader

    @property
    def defaults(self) -> EngineDefaults:
        """
        Defaults for the next call

        A SharedDefaults is snapshotted per call and raises
        ConfigLockContention if another thread holds it.
        """
        if isinstance(self._defaults, SharedDefaults):
            return self._defaults.snapshot()
        return self._defaults

    @property
    def pools(self) -> "PoolModule":
        """
        Pool module

        Provides:
        - splash(t1, t2) / concentrated(t1, t2, tick_spacing)
        - by_token_pair(t1, t2)
        - create(mint_a, mint_b, tick_spacing, initial_price)
        """
        if self._pools is None:
            from .modules.pool import PoolModule
            self._pools = PoolModule(self)
        return self._pools

    @property
    def positions(self) -> "PositionModule":
        """
        Position module

        Provides:
        - increase(position_mint, param) / decrease(position_mint, param)
        - harvest(position_mint)
        - close(position_mint)
        """
        if self._positions is None:
            from .modules.position import PositionModule
            self._positions = PositionModule(self)
        return self._positions

    def close(self):
        """Close the RPC client if this client created it"""
        if self._owns_rpc:
            self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"WhirlpoolClient(endpoint={self._rpc.endpoint!r})"
