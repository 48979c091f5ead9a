"""
Infrastructure layer: RPC transport and account reading
"""

from .rpc import RpcClient, RpcClientConfig
from .account_reader import AccountReader, memcmp_filter

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "AccountReader",
    "memcmp_filter",
]
