"""
Test Errors Module

Tests for whirlpool_adapter.errors package.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_error_code():
    """Test ErrorCode enum families"""
    from whirlpool_adapter.errors import ErrorCode

    print("Testing ErrorCode...")

    assert ErrorCode.RPC_CONNECTION_FAILED.value == "1001"
    assert ErrorCode.ACCOUNT_NOT_FOUND.value == "4001"
    assert ErrorCode.QUOTE_REJECTED.value == "5001"
    assert ErrorCode.PRECONDITION_VIOLATED.value == "6001"
    assert ErrorCode.CONFIG_LOCK_CONTENTION.value == "8001"
    assert ErrorCode.CONFIG_INVALID.value == "9001"

    print("  ErrorCode: PASSED")


def test_base_error():
    """Test WhirlpoolAdapterError base class"""
    from whirlpool_adapter.errors import WhirlpoolAdapterError, ErrorCode

    print("Testing WhirlpoolAdapterError...")

    error = WhirlpoolAdapterError(
        message="Test error",
        code=ErrorCode.RPC_CONNECTION_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert "[1001] Test error" == str(error)
    assert error.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error.should_retry
    assert error.details == {}

    print("  WhirlpoolAdapterError: PASSED")


def test_rpc_error():
    """Test RpcError constructors"""
    from whirlpool_adapter.errors import RpcError, ErrorCode

    print("Testing RpcError...")

    error = RpcError.connection_failed("https://rpc.example.com")
    assert error.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error.recoverable
    assert error.endpoint == "https://rpc.example.com"

    error = RpcError.timeout("https://rpc.example.com", 30.0)
    assert error.code == ErrorCode.RPC_TIMEOUT
    assert "30.0" in str(error)

    assert RpcError.rate_limited("https://rpc.example.com").code == ErrorCode.RPC_RATE_LIMITED
    assert RpcError.invalid_response("getEpochInfo", "missing epoch").code == ErrorCode.RPC_INVALID_RESPONSE

    print("  RpcError: PASSED")


def test_account_not_found():
    """Test AccountNotFound kinds"""
    from whirlpool_adapter.errors import AccountNotFound, ErrorCode

    print("Testing AccountNotFound...")

    error = AccountNotFound.mint("MintAddress")
    assert error.code == ErrorCode.MINT_NOT_FOUND
    assert error.address == "MintAddress"
    assert error.kind == "mint"
    assert not error.recoverable

    assert AccountNotFound.pool("Pool").code == ErrorCode.POOL_NOT_FOUND
    assert AccountNotFound.position("Pos").code == ErrorCode.POSITION_NOT_FOUND

    error = AccountNotFound.account("tick_array", "Ta")
    assert error.code == ErrorCode.ACCOUNT_NOT_FOUND
    assert "tick_array Ta not found" in str(error)

    print("  AccountNotFound: PASSED")


def test_decode_mismatch():
    """Test DecodeMismatch constructors"""
    from whirlpool_adapter.errors import DecodeMismatch, ErrorCode

    print("Testing DecodeMismatch...")

    error = DecodeMismatch.discriminator("Whirlpool", b"\x01" * 8, b"\x02" * 8)
    assert error.code == ErrorCode.DISCRIMINATOR_MISMATCH
    assert "0101010101010101" in str(error)
    assert error.layout == "Whirlpool"

    error = DecodeMismatch.size("Position", 216, 100)
    assert error.code == ErrorCode.DECODE_MISMATCH
    assert "216" in str(error)

    error = DecodeMismatch.owner("FeeTier", "Addr", "Owner")
    assert error.code == ErrorCode.OWNER_MISMATCH
    assert not error.recoverable

    print("  DecodeMismatch: PASSED")


def test_precondition_violated():
    """Test PreconditionViolated constructors"""
    from whirlpool_adapter.errors import PreconditionViolated, ErrorCode

    print("Testing PreconditionViolated...")

    error = PreconditionViolated.mint_order("B", "A")
    assert error.code == ErrorCode.MINT_ORDER_INVALID
    assert "canonical ordering" in str(error)
    assert error.details == {"mint_a": "B", "mint_b": "A"}

    error = PreconditionViolated.missing_authority("funder")
    assert error.code == ErrorCode.AUTHORITY_MISSING
    assert "Funder must be provided" in str(error)

    error = PreconditionViolated.invalid("tick_spacing", "0 not in [1, 65535]")
    assert error.code == ErrorCode.PRECONDITION_VIOLATED
    assert error.details["param"] == "tick_spacing"

    print("  PreconditionViolated: PASSED")


def test_quote_rejected():
    """Test QuoteRejected constructors"""
    from whirlpool_adapter.errors import QuoteRejected, ErrorCode

    print("Testing QuoteRejected...")

    assert QuoteRejected.invalid_tick_range(10, 5).code == ErrorCode.QUOTE_INVALID_TICK_RANGE
    assert QuoteRejected.overflow("token max A").code == ErrorCode.QUOTE_OVERFLOW

    cause = ValueError("bad")
    error = QuoteRejected.invalid("bad input", cause)
    assert error.code == ErrorCode.QUOTE_REJECTED
    assert error.original_error is cause
    assert not error.recoverable

    print("  QuoteRejected: PASSED")


def test_lock_contention_and_configuration():
    """Test ConfigLockContention and ConfigurationError"""
    from whirlpool_adapter.errors import ConfigLockContention, ConfigurationError, ErrorCode

    print("Testing ConfigLockContention / ConfigurationError...")

    error = ConfigLockContention()
    assert error.code == ErrorCode.CONFIG_LOCK_CONTENTION
    assert error.should_retry

    assert ConfigurationError.missing("RPC endpoint").code == ErrorCode.CONFIG_MISSING
    assert ConfigurationError.derivation_failed("whirlpool", "no bump").code == ErrorCode.ADDRESS_DERIVATION_FAILED
    error = ConfigurationError.unsupported_token_program("Mint", "Owner")
    assert error.code == ErrorCode.UNSUPPORTED_TOKEN_PROGRAM
    assert not error.recoverable

    print("  ConfigLockContention / ConfigurationError: PASSED")


def test_error_inheritance():
    """Test every error derives from WhirlpoolAdapterError"""
    from whirlpool_adapter.errors import (
        WhirlpoolAdapterError,
        RpcError,
        AccountNotFound,
        DecodeMismatch,
        PreconditionViolated,
        QuoteRejected,
        ConfigLockContention,
        ConfigurationError,
    )

    print("Testing error inheritance...")

    for cls in (
        RpcError,
        AccountNotFound,
        DecodeMismatch,
        PreconditionViolated,
        QuoteRejected,
        ConfigLockContention,
        ConfigurationError,
    ):
        assert issubclass(cls, WhirlpoolAdapterError)
        assert issubclass(cls, Exception)

    print("  Error inheritance: PASSED")


def main():
    """Run all error tests"""
    print("=" * 60)
    print("Whirlpool Adapter Errors Tests")
    print("=" * 60)

    tests = [
        test_error_code,
        test_base_error,
        test_rpc_error,
        test_account_not_found,
        test_decode_mismatch,
        test_precondition_violated,
        test_quote_rejected,
        test_lock_contention_and_configuration,
        test_error_inheritance,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
