"""
Error definitions for Whirlpool Adapter
"""

from .exceptions import (
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
