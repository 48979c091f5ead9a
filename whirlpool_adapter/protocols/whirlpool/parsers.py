"""
Whirlpool and SPL Token account parsers

Decoders take a RawAccount and return the typed account. Every Anchor
account is checked for its discriminator, minimum size and owner program.
Token-2022 mints additionally have their TLV extension area scanned for
TransferFeeConfig.
"""

import struct
from typing import Optional

from solders.pubkey import Pubkey

from ...errors import ConfigurationError, DecodeMismatch
from ...types import (
    RawAccount,
    EpochFee,
    TransferFeeConfig,
    Mint,
    TokenAccount,
    WhirlpoolRewardInfo,
    Whirlpool,
    PositionRewardInfo,
    Position,
    Tick,
    TickArray,
    FeeTier,
    WhirlpoolsConfig,
)
from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ACCOUNT_DISCRIMINATORS,
    WHIRLPOOL_SIZE,
    POSITION_SIZE,
    TICK_SIZE,
    TICK_ARRAY_SIZE,
    TICK_ARRAY_ACCOUNT_SIZE,
    FEE_TIER_SIZE,
    WHIRLPOOLS_CONFIG_SIZE,
    MINT_SIZE,
    TOKEN_ACCOUNT_SIZE,
    NUM_REWARDS,
    EXTENSION_TYPE_TRANSFER_FEE_CONFIG,
)

# Token-2022: base accounts are padded to the token account size, followed
# by a one-byte account type and the TLV extension entries
TOKEN_2022_ACCOUNT_TYPE_OFFSET = TOKEN_ACCOUNT_SIZE
TOKEN_2022_TLV_OFFSET = TOKEN_ACCOUNT_SIZE + 1
TRANSFER_FEE_CONFIG_SIZE = 108


def _pubkey(data: bytes, offset: int) -> Pubkey:
    return Pubkey.from_bytes(data[offset:offset + 32])


def _u128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")


def _i128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little", signed=True)


def _optional_pubkey(data: bytes, offset: int) -> Optional[Pubkey]:
    """OptionalNonZeroPubkey: all-zero means unset"""
    key = _pubkey(data, offset)
    return None if key == Pubkey.default() else key


def _check_anchor_account(raw: RawAccount, name: str, size: int):
    if raw.owner != WHIRLPOOL_PROGRAM_ID:
        raise DecodeMismatch.owner(name, str(raw.address), str(raw.owner))
    if len(raw.data) < size:
        raise DecodeMismatch.size(name, size, len(raw.data))
    expected = ACCOUNT_DISCRIMINATORS[name]
    actual = raw.data[:8]
    if actual != expected:
        raise DecodeMismatch.discriminator(name, expected, actual)


def parse_whirlpool(raw: RawAccount) -> Whirlpool:
    """
    Parse Whirlpool account

    Layout (653 bytes):
    - blob(8): discriminator
    - publicKey(32): whirlpoolsConfig
    - u8: whirlpoolBump
    - u16: tickSpacing
    - [u8; 2]: feeTierIndexSeed
    - u16: feeRate
    - u16: protocolFeeRate
    - u128: liquidity
    - u128: sqrtPrice
    - i32: tickCurrentIndex
    - u64: protocolFeeOwedA
    - u64: protocolFeeOwedB
    - publicKey(32): tokenMintA
    - publicKey(32): tokenVaultA
    - u128: feeGrowthGlobalA
    - publicKey(32): tokenMintB
    - publicKey(32): tokenVaultB
    - u128: feeGrowthGlobalB
    - u64: rewardLastUpdatedTimestamp
    - 3 x WhirlpoolRewardInfo(128)
    """
    _check_anchor_account(raw, "Whirlpool", WHIRLPOOL_SIZE)
    data = raw.data
    offset = 8

    whirlpools_config = _pubkey(data, offset)
    offset += 32

    bump = data[offset]
    offset += 1

    tick_spacing, fee_tier_index_seed, fee_rate, protocol_fee_rate = struct.unpack_from(
        "<HHHH", data, offset
    )
    offset += 8

    liquidity = _u128(data, offset)
    offset += 16

    sqrt_price = _u128(data, offset)
    offset += 16

    tick_current_index = struct.unpack_from("<i", data, offset)[0]
    offset += 4

    protocol_fee_owed_a, protocol_fee_owed_b = struct.unpack_from("<QQ", data, offset)
    offset += 16

    token_mint_a = _pubkey(data, offset)
    offset += 32
    token_vault_a = _pubkey(data, offset)
    offset += 32
    fee_growth_global_a = _u128(data, offset)
    offset += 16

    token_mint_b = _pubkey(data, offset)
    offset += 32
    token_vault_b = _pubkey(data, offset)
    offset += 32
    fee_growth_global_b = _u128(data, offset)
    offset += 16

    reward_last_updated_timestamp = struct.unpack_from("<Q", data, offset)[0]
    offset += 8

    reward_infos = []
    for _ in range(NUM_REWARDS):
        reward_infos.append(WhirlpoolRewardInfo(
            mint=_pubkey(data, offset),
            vault=_pubkey(data, offset + 32),
            authority=_pubkey(data, offset + 64),
            emissions_per_second_x64=_u128(data, offset + 96),
            growth_global_x64=_u128(data, offset + 112),
        ))
        offset += 128

    return Whirlpool(
        address=raw.address,
        whirlpools_config=whirlpools_config,
        whirlpool_bump=bump,
        tick_spacing=tick_spacing,
        fee_tier_index_seed=fee_tier_index_seed,
        fee_rate=fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        liquidity=liquidity,
        sqrt_price=sqrt_price,
        tick_current_index=tick_current_index,
        protocol_fee_owed_a=protocol_fee_owed_a,
        protocol_fee_owed_b=protocol_fee_owed_b,
        token_mint_a=token_mint_a,
        token_vault_a=token_vault_a,
        fee_growth_global_a=fee_growth_global_a,
        token_mint_b=token_mint_b,
        token_vault_b=token_vault_b,
        fee_growth_global_b=fee_growth_global_b,
        reward_last_updated_timestamp=reward_last_updated_timestamp,
        reward_infos=reward_infos,
    )


def parse_position(raw: RawAccount) -> Position:
    """
    Parse Position account

    Layout (216 bytes):
    - blob(8): discriminator
    - publicKey(32): whirlpool
    - publicKey(32): positionMint
    - u128: liquidity
    - i32: tickLowerIndex
    - i32: tickUpperIndex
    - u128: feeGrowthCheckpointA
    - u64: feeOwedA
    - u128: feeGrowthCheckpointB
    - u64: feeOwedB
    - 3 x (u128 growthInsideCheckpoint, u64 amountOwed)
    """
    _check_anchor_account(raw, "Position", POSITION_SIZE)
    data = raw.data
    offset = 8

    whirlpool = _pubkey(data, offset)
    offset += 32
    position_mint = _pubkey(data, offset)
    offset += 32

    liquidity = _u128(data, offset)
    offset += 16

    tick_lower_index, tick_upper_index = struct.unpack_from("<ii", data, offset)
    offset += 8

    fee_growth_checkpoint_a = _u128(data, offset)
    offset += 16
    fee_owed_a = struct.unpack_from("<Q", data, offset)[0]
    offset += 8

    fee_growth_checkpoint_b = _u128(data, offset)
    offset += 16
    fee_owed_b = struct.unpack_from("<Q", data, offset)[0]
    offset += 8

    reward_infos = []
    for _ in range(NUM_REWARDS):
        reward_infos.append(PositionRewardInfo(
            growth_inside_checkpoint=_u128(data, offset),
            amount_owed=struct.unpack_from("<Q", data, offset + 16)[0],
        ))
        offset += 24

    return Position(
        address=raw.address,
        whirlpool=whirlpool,
        position_mint=position_mint,
        liquidity=liquidity,
        tick_lower_index=tick_lower_index,
        tick_upper_index=tick_upper_index,
        fee_growth_checkpoint_a=fee_growth_checkpoint_a,
        fee_owed_a=fee_owed_a,
        fee_growth_checkpoint_b=fee_growth_checkpoint_b,
        fee_owed_b=fee_owed_b,
        reward_infos=reward_infos,
    )


def _parse_tick(data: bytes, offset: int) -> Tick:
    return Tick(
        initialized=data[offset] != 0,
        liquidity_net=_i128(data, offset + 1),
        liquidity_gross=_u128(data, offset + 17),
        fee_growth_outside_a=_u128(data, offset + 33),
        fee_growth_outside_b=_u128(data, offset + 49),
        reward_growths_outside=[_u128(data, offset + 65 + 16 * i) for i in range(NUM_REWARDS)],
    )


def parse_tick_array(raw: RawAccount) -> TickArray:
    """
    Parse TickArray account

    Layout (9988 bytes): discriminator(8), i32 startTickIndex,
    88 x Tick(113), publicKey(32) whirlpool
    """
    _check_anchor_account(raw, "TickArray", TICK_ARRAY_ACCOUNT_SIZE)
    data = raw.data
    start_tick_index = struct.unpack_from("<i", data, 8)[0]
    offset = 12
    ticks = []
    for _ in range(TICK_ARRAY_SIZE):
        ticks.append(_parse_tick(data, offset))
        offset += TICK_SIZE
    return TickArray(
        address=raw.address,
        start_tick_index=start_tick_index,
        ticks=ticks,
        whirlpool=_pubkey(data, offset),
    )


def parse_fee_tier(raw: RawAccount) -> FeeTier:
    """Parse FeeTier account: discriminator, config, u16 tickSpacing, u16 defaultFeeRate"""
    _check_anchor_account(raw, "FeeTier", FEE_TIER_SIZE)
    tick_spacing, default_fee_rate = struct.unpack_from("<HH", raw.data, 40)
    return FeeTier(
        address=raw.address,
        whirlpools_config=_pubkey(raw.data, 8),
        tick_spacing=tick_spacing,
        default_fee_rate=default_fee_rate,
    )


def parse_whirlpools_config(raw: RawAccount) -> WhirlpoolsConfig:
    """Parse WhirlpoolsConfig account"""
    _check_anchor_account(raw, "WhirlpoolsConfig", WHIRLPOOLS_CONFIG_SIZE)
    data = raw.data
    return WhirlpoolsConfig(
        address=raw.address,
        fee_authority=_pubkey(data, 8),
        collect_protocol_fees_authority=_pubkey(data, 40),
        reward_emissions_super_authority=_pubkey(data, 72),
        default_protocol_fee_rate=struct.unpack_from("<H", data, 104)[0],
    )


def _parse_epoch_fee(data: bytes, offset: int) -> EpochFee:
    epoch, maximum_fee, basis_points = struct.unpack_from("<QQH", data, offset)
    return EpochFee(epoch=epoch, maximum_fee=maximum_fee, transfer_fee_basis_points=basis_points)


def _parse_transfer_fee_config(data: bytes) -> Optional[TransferFeeConfig]:
    """Scan the Token-2022 TLV area for the TransferFeeConfig extension"""
    if len(data) <= TOKEN_2022_TLV_OFFSET:
        return None
    offset = TOKEN_2022_TLV_OFFSET
    while offset + 4 <= len(data):
        ext_type, ext_len = struct.unpack_from("<HH", data, offset)
        offset += 4
        if ext_type == 0 and ext_len == 0:
            break
        if ext_type == EXTENSION_TYPE_TRANSFER_FEE_CONFIG:
            if ext_len < TRANSFER_FEE_CONFIG_SIZE or offset + ext_len > len(data):
                raise DecodeMismatch.size("TransferFeeConfig", TRANSFER_FEE_CONFIG_SIZE, ext_len)
            return TransferFeeConfig(
                transfer_fee_config_authority=_optional_pubkey(data, offset),
                withdraw_withheld_authority=_optional_pubkey(data, offset + 32),
                withheld_amount=struct.unpack_from("<Q", data, offset + 64)[0],
                older_transfer_fee=_parse_epoch_fee(data, offset + 72),
                newer_transfer_fee=_parse_epoch_fee(data, offset + 90),
            )
        offset += ext_len
    return None


def parse_mint(raw: RawAccount) -> Mint:
    """
    Parse SPL Token / Token-2022 mint

    Layout (82 bytes base):
    - COption<Pubkey>: mintAuthority (u32 tag + 32)
    - u64: supply
    - u8: decimals
    - bool: isInitialized
    - COption<Pubkey>: freezeAuthority (u32 tag + 32)
    """
    if raw.owner not in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
        raise ConfigurationError.unsupported_token_program(str(raw.address), str(raw.owner))
    data = raw.data
    if len(data) < MINT_SIZE:
        raise DecodeMismatch.size("Mint", MINT_SIZE, len(data))

    mint_authority_tag = struct.unpack_from("<I", data, 0)[0]
    supply = struct.unpack_from("<Q", data, 36)[0]
    decimals = data[44]
    is_initialized = data[45]
    freeze_authority_tag = struct.unpack_from("<I", data, 46)[0]
    if not is_initialized:
        raise DecodeMismatch(f"Mint {raw.address} is not initialized", str(raw.address), "Mint")

    transfer_fee_config = None
    if raw.owner == TOKEN_2022_PROGRAM_ID:
        transfer_fee_config = _parse_transfer_fee_config(data)

    return Mint(
        address=raw.address,
        token_program=raw.owner,
        supply=supply,
        decimals=decimals,
        mint_authority=_pubkey(data, 4) if mint_authority_tag else None,
        freeze_authority=_pubkey(data, 50) if freeze_authority_tag else None,
        transfer_fee_config=transfer_fee_config,
    )


def parse_token_account(raw: RawAccount) -> TokenAccount:
    """Parse SPL token account: mint(32), owner(32), u64 amount, ..."""
    if raw.owner not in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
        raise DecodeMismatch.owner("TokenAccount", str(raw.address), str(raw.owner))
    if len(raw.data) < TOKEN_ACCOUNT_SIZE:
        raise DecodeMismatch.size("TokenAccount", TOKEN_ACCOUNT_SIZE, len(raw.data))
    return TokenAccount(
        address=raw.address,
        mint=_pubkey(raw.data, 0),
        owner=_pubkey(raw.data, 32),
        amount=struct.unpack_from("<Q", raw.data, 64)[0],
    )
