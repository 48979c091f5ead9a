"""
Exception definitions for Whirlpool Adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for instruction assembly

    1xxx - RPC errors
    4xxx - Account / state errors
    5xxx - Quote errors
    6xxx - Precondition errors
    8xxx - Shared default errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Account / state errors
    ACCOUNT_NOT_FOUND = "4001"
    MINT_NOT_FOUND = "4002"
    POOL_NOT_FOUND = "4003"
    POSITION_NOT_FOUND = "4004"
    DECODE_MISMATCH = "4101"
    DISCRIMINATOR_MISMATCH = "4102"
    OWNER_MISMATCH = "4103"

    # Quote errors
    QUOTE_REJECTED = "5001"
    QUOTE_INVALID_TICK_RANGE = "5002"
    QUOTE_OVERFLOW = "5003"

    # Precondition errors
    PRECONDITION_VIOLATED = "6001"
    MINT_ORDER_INVALID = "6002"
    AUTHORITY_MISSING = "6003"

    # Shared default errors
    CONFIG_LOCK_CONTENTION = "8001"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"
    ADDRESS_DERIVATION_FAILED = "9003"
    UNSUPPORTED_TOKEN_PROGRAM = "9004"


class WhirlpoolAdapterError(Exception):
    """
    Base exception for all whirlpool adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class RpcError(WhirlpoolAdapterError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - Invalid response received
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, method: str, reason: str) -> "RpcError":
        return cls(
            f"Invalid response for {method}: {reason}",
            ErrorCode.RPC_INVALID_RESPONSE,
        )


class AccountNotFound(WhirlpoolAdapterError):
    """
    Required account is absent - not recoverable

    Raised when:
    - A mint, pool, position or config account the intent depends on
      does not exist on chain
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        kind: Optional[str] = None,
        code: ErrorCode = ErrorCode.ACCOUNT_NOT_FOUND,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"address": address, "kind": kind},
        )
        self.address = address
        self.kind = kind

    @classmethod
    def account(cls, kind: str, address: str) -> "AccountNotFound":
        return cls(f"{kind} {address} not found", address=address, kind=kind)

    @classmethod
    def mint(cls, address: str) -> "AccountNotFound":
        return cls(
            f"Mint {address} not found",
            address=address,
            kind="mint",
            code=ErrorCode.MINT_NOT_FOUND,
        )

    @classmethod
    def pool(cls, address: str) -> "AccountNotFound":
        return cls(
            f"Whirlpool {address} not found",
            address=address,
            kind="whirlpool",
            code=ErrorCode.POOL_NOT_FOUND,
        )

    @classmethod
    def position(cls, address: str) -> "AccountNotFound":
        return cls(
            f"Position {address} not found",
            address=address,
            kind="position",
            code=ErrorCode.POSITION_NOT_FOUND,
        )


class DecodeMismatch(WhirlpoolAdapterError):
    """
    Account exists but does not parse under the expected layout - not recoverable

    Usually means a wrong address was supplied or the program layout drifted.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        layout: Optional[str] = None,
        code: ErrorCode = ErrorCode.DECODE_MISMATCH,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"address": address, "layout": layout},
        )
        self.address = address
        self.layout = layout

    @classmethod
    def discriminator(cls, layout: str, expected: bytes, actual: bytes) -> "DecodeMismatch":
        return cls(
            f"{layout} discriminator mismatch: expected {expected.hex()}, got {actual.hex()}",
            layout=layout,
            code=ErrorCode.DISCRIMINATOR_MISMATCH,
        )

    @classmethod
    def size(cls, layout: str, expected: int, actual: int) -> "DecodeMismatch":
        return cls(
            f"{layout} account too small: need {expected} bytes, got {actual}",
            layout=layout,
        )

    @classmethod
    def owner(cls, layout: str, address: str, owner: str) -> "DecodeMismatch":
        return cls(
            f"{layout} account {address} has unexpected owner {owner}",
            address=address,
            layout=layout,
            code=ErrorCode.OWNER_MISMATCH,
        )


class PreconditionViolated(WhirlpoolAdapterError):
    """
    Caller supplied arguments that can never succeed - not recoverable

    Raised before any network read whenever possible.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PRECONDITION_VIOLATED,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code, recoverable=False, details=details)

    @classmethod
    def mint_order(cls, mint_a: str, mint_b: str) -> "PreconditionViolated":
        return cls(
            "Token order needs to be flipped to match the canonical ordering "
            f"(i.e. sorted on the byte repr. of the mint pubkeys): {mint_a} >= {mint_b}",
            ErrorCode.MINT_ORDER_INVALID,
            details={"mint_a": mint_a, "mint_b": mint_b},
        )

    @classmethod
    def missing_authority(cls, role: str = "authority") -> "PreconditionViolated":
        return cls(
            f"{role.capitalize()} must be provided",
            ErrorCode.AUTHORITY_MISSING,
            details={"role": role},
        )

    @classmethod
    def invalid(cls, param: str, reason: str) -> "PreconditionViolated":
        return cls(
            f"Invalid argument '{param}': {reason}",
            details={"param": param},
        )


class QuoteRejected(WhirlpoolAdapterError):
    """
    Quote math rejected the inputs - fatal to this call

    The caller may retry with an adjusted tolerance or range.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.QUOTE_REJECTED,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, code, recoverable=False, original_error=original_error)

    @classmethod
    def invalid_tick_range(cls, tick_lower: int, tick_upper: int) -> "QuoteRejected":
        return cls(
            f"Invalid tick range [{tick_lower}, {tick_upper}]",
            ErrorCode.QUOTE_INVALID_TICK_RANGE,
        )

    @classmethod
    def overflow(cls, reason: str) -> "QuoteRejected":
        return cls(f"Arithmetic overflow: {reason}", ErrorCode.QUOTE_OVERFLOW)

    @classmethod
    def invalid(cls, reason: str, error: Exception = None) -> "QuoteRejected":
        return cls(f"Quote rejected: {reason}", original_error=error)


class ConfigLockContention(WhirlpoolAdapterError):
    """
    A shared default could not be acquired without blocking - recoverable
    """

    def __init__(self, message: str = "Shared engine defaults are locked by another caller"):
        super().__init__(message, ErrorCode.CONFIG_LOCK_CONTENTION, recoverable=True)


class ConfigurationError(WhirlpoolAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    - A seed set has no valid program address
    - A mint is owned by an unknown token program
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)

    @classmethod
    def derivation_failed(cls, kind: str, reason: str) -> "ConfigurationError":
        return cls(
            f"Unable to derive {kind} address: {reason}",
            ErrorCode.ADDRESS_DERIVATION_FAILED,
        )

    @classmethod
    def unsupported_token_program(cls, mint: str, owner: str) -> "ConfigurationError":
        return cls(
            f"Mint {mint} is owned by unsupported token program {owner}",
            ErrorCode.UNSUPPORTED_TOKEN_PROGRAM,
        )
