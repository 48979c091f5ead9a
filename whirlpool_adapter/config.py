"""
Configuration management for Whirlpool Adapter

Loads settings from environment variables and .env file.
Holds the engine defaults every instruction pipeline receives explicitly.
"""

import os
import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from .errors import ConfigLockContention, ConfigurationError
from .types.common import NativeMintWrappingStrategy


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # whirlpool_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


# Protocol address presets
MAINNET_WHIRLPOOLS_CONFIG = "2LecshUwdy9xi7meFgHtFJQNSKk4KdTrcpvaB56dP2NQ"
MAINNET_WHIRLPOOLS_CONFIG_EXTENSION = "777H5H3Tp9U11uRVRzFwM8BinfiakbaLT8vQpeuhvEiH"
DEVNET_WHIRLPOOLS_CONFIG = "FcrweFY1G9HJAHG5inkGB6pKg1HZ6x9UC2WioAfWrGkR"
DEVNET_WHIRLPOOLS_CONFIG_EXTENSION = "475EJ7JqnRpVLoFVzp2ruEYvWWMCf6Z8KMWRujtXXNSU"

WHIRLPOOL_PRESETS = {
    "mainnet": (MAINNET_WHIRLPOOLS_CONFIG, MAINNET_WHIRLPOOLS_CONFIG_EXTENSION),
    "devnet": (DEVNET_WHIRLPOOLS_CONFIG, DEVNET_WHIRLPOOLS_CONFIG_EXTENSION),
}


@dataclass
class RpcConfig:
    """RPC client configuration"""
    url: str = field(default_factory=lambda: _get_env("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com"))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    max_retries: int = field(default_factory=lambda: _get_env_int("RPC_MAX_RETRIES", 3))
    retry_delay_seconds: float = field(default_factory=lambda: _get_env_float("RPC_RETRY_DELAY_SECONDS", 0.5))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))


@dataclass
class WhirlpoolConfig:
    """Whirlpool program addresses and default engine parameters"""
    program_id: str = field(default_factory=lambda: _get_env(
        "WHIRLPOOL_PROGRAM_ID", "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc"
    ))
    # mainnet / devnet; explicit addresses below override the preset
    network: str = field(default_factory=lambda: _get_env("WHIRLPOOL_NETWORK", "mainnet"))
    config_address: str = field(default_factory=lambda: _get_env("WHIRLPOOLS_CONFIG_ADDRESS", ""))
    config_extension_address: str = field(default_factory=lambda: _get_env(
        "WHIRLPOOLS_CONFIG_EXTENSION_ADDRESS", ""
    ))
    funder: str = field(default_factory=lambda: _get_env("WHIRLPOOL_FUNDER", ""))
    default_slippage_bps: int = field(default_factory=lambda: _get_env_int("DEFAULT_SLIPPAGE_BPS", 100))
    native_mint_wrapping_strategy: str = field(default_factory=lambda: _get_env(
        "NATIVE_MINT_WRAPPING_STRATEGY", "keypair"
    ))


def _get_default_log_path() -> str:
    """Get default log file path under whirlpool_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"whirlpool_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with optional rotating file output.

    Environment variables:
        LOG_FILE: Path to log file (empty disables file output)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Usage:
        from whirlpool_adapter.config import config

        print(config.rpc.url)
        print(config.whirlpool.default_slippage_bps)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    whirlpool: WhirlpoolConfig = field(default_factory=WhirlpoolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def _parse_pubkey(param: str, value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ConfigurationError.invalid(param, str(e))


def _parse_wrapping_strategy(value: str) -> NativeMintWrappingStrategy:
    try:
        return NativeMintWrappingStrategy(value.lower())
    except ValueError:
        valid = ", ".join(s.value for s in NativeMintWrappingStrategy)
        raise ConfigurationError.invalid(
            "native_mint_wrapping_strategy", f"'{value}' (expected one of: {valid})"
        )


@dataclass(frozen=True)
class EngineDefaults:
    """
    Default parameters passed into every instruction pipeline

    Replaces process-wide mutable defaults: callers build one (or use
    from_config()) and hand it to the pipelines, so concurrent calls never
    contend on shared state.

    Attributes:
        funder: Account paying rent for created accounts (all-zero = unset)
        slippage_bps: Default slippage tolerance in basis points
        native_mint_wrapping_strategy: How native SOL is wrapped
        whirlpools_config: WhirlpoolsConfig account address
        whirlpools_config_extension: WhirlpoolsConfigExtension address
    """
    funder: Pubkey = field(default_factory=Pubkey.default)
    slippage_bps: int = 100
    native_mint_wrapping_strategy: NativeMintWrappingStrategy = NativeMintWrappingStrategy.KEYPAIR
    whirlpools_config: Pubkey = field(
        default_factory=lambda: Pubkey.from_string(MAINNET_WHIRLPOOLS_CONFIG)
    )
    whirlpools_config_extension: Pubkey = field(
        default_factory=lambda: Pubkey.from_string(MAINNET_WHIRLPOOLS_CONFIG_EXTENSION)
    )

    def __post_init__(self):
        if not 0 <= self.slippage_bps <= 10_000:
            raise ConfigurationError.invalid(
                "slippage_bps", f"{self.slippage_bps} not in [0, 10000]"
            )

    @classmethod
    def for_network(cls, network: str, **overrides) -> "EngineDefaults":
        """Build defaults using the named protocol address preset"""
        if network not in WHIRLPOOL_PRESETS:
            raise ConfigurationError.invalid("network", f"unknown preset '{network}'")
        config_address, extension_address = WHIRLPOOL_PRESETS[network]
        overrides.setdefault("whirlpools_config", Pubkey.from_string(config_address))
        overrides.setdefault("whirlpools_config_extension", Pubkey.from_string(extension_address))
        return cls(**overrides)

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "EngineDefaults":
        """Build defaults from environment configuration"""
        wp = (cfg or config).whirlpool
        if wp.network not in WHIRLPOOL_PRESETS:
            raise ConfigurationError.invalid("WHIRLPOOL_NETWORK", f"unknown preset '{wp.network}'")
        preset_config, preset_extension = WHIRLPOOL_PRESETS[wp.network]

        return cls(
            funder=_parse_pubkey("WHIRLPOOL_FUNDER", wp.funder) if wp.funder else Pubkey.default(),
            slippage_bps=wp.default_slippage_bps,
            native_mint_wrapping_strategy=_parse_wrapping_strategy(wp.native_mint_wrapping_strategy),
            whirlpools_config=_parse_pubkey(
                "WHIRLPOOLS_CONFIG_ADDRESS", wp.config_address or preset_config
            ),
            whirlpools_config_extension=_parse_pubkey(
                "WHIRLPOOLS_CONFIG_EXTENSION_ADDRESS",
                wp.config_extension_address or preset_extension,
            ),
        )

    def with_overrides(self, **changes) -> "EngineDefaults":
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)


class SharedDefaults:
    """
    Engine defaults shared between callers

    Access is guarded by a lock acquired without blocking: if another
    caller holds it, ConfigLockContention is raised and the caller may
    retry the whole call.

    Usage:
        shared = SharedDefaults(EngineDefaults.from_config())
        defaults = shared.snapshot()
        shared.update(slippage_bps=50)
    """

    def __init__(self, defaults: Optional[EngineDefaults] = None):
        self._defaults = defaults or EngineDefaults()
        self._lock = threading.Lock()

    def _acquire(self):
        if not self._lock.acquire(blocking=False):
            raise ConfigLockContention()

    def snapshot(self) -> EngineDefaults:
        """Return the current defaults (immutable value)"""
        self._acquire()
        try:
            return self._defaults
        finally:
            self._lock.release()

    def update(self, **changes) -> EngineDefaults:
        """Replace one or more default fields, returning the new value"""
        self._acquire()
        try:
            self._defaults = self._defaults.with_overrides(**changes)
            return self._defaults
        finally:
            self._lock.release()

    def reset(self) -> EngineDefaults:
        """Restore the built-in defaults"""
        self._acquire()
        try:
            self._defaults = EngineDefaults()
            return self._defaults
        finally:
            self._lock.release()


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "whirlpool_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close handlers before removing to release file handles on reload
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from the package logger
    for name in [
        f"{logger_name}.infra",
        f"{logger_name}.modules",
        f"{logger_name}.protocols",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """
    Quick setup for file logging.

    Args:
        log_file: Path to log file (defaults to whirlpool_adapter/log/)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        console: Also output to console

    Returns:
        Configured logger
    """
    if log_file is None:
        log_file = config.logging.log_file or _get_default_log_path()

    log_config = LoggingConfig(
        log_file=log_file,
        log_level=level,
        console_output=console,
    )
    return setup_logging(log_config)
