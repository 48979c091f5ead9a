"""
Decoded on-chain account types

Field names follow the Whirlpool program's account layouts.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class EpochFee:
    """Transfer fee parameters active from `epoch` onwards"""
    epoch: int
    maximum_fee: int
    transfer_fee_basis_points: int


@dataclass(frozen=True)
class TransferFeeConfig:
    """Token-2022 TransferFeeConfig extension"""
    transfer_fee_config_authority: Optional[Pubkey]
    withdraw_withheld_authority: Optional[Pubkey]
    withheld_amount: int
    older_transfer_fee: EpochFee
    newer_transfer_fee: EpochFee

    def get_epoch_fee(self, epoch: int) -> EpochFee:
        """Fee schedule in effect at the given epoch"""
        if epoch >= self.newer_transfer_fee.epoch:
            return self.newer_transfer_fee
        return self.older_transfer_fee


@dataclass(frozen=True)
class Mint:
    """
    SPL Token / Token-2022 mint

    Attributes:
        address: Mint address
        token_program: Owning token program
        supply: Total supply (raw units)
        decimals: Decimal places
        transfer_fee_config: Token-2022 transfer fee extension, if present
    """
    address: Pubkey
    token_program: Pubkey
    supply: int
    decimals: int
    mint_authority: Optional[Pubkey] = None
    freeze_authority: Optional[Pubkey] = None
    transfer_fee_config: Optional[TransferFeeConfig] = None


@dataclass(frozen=True)
class TokenAccount:
    """SPL token account"""
    address: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount: int


@dataclass(frozen=True)
class WhirlpoolRewardInfo:
    """One of the three reward slots of a Whirlpool"""
    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int
    growth_global_x64: int

    @property
    def initialized(self) -> bool:
        return self.mint != Pubkey.default()


@dataclass(frozen=True)
class Whirlpool:
    """Decoded Whirlpool account"""
    address: Pubkey
    whirlpools_config: Pubkey
    whirlpool_bump: int
    tick_spacing: int
    fee_tier_index_seed: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    protocol_fee_owed_a: int
    protocol_fee_owed_b: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    fee_growth_global_a: int
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    fee_growth_global_b: int
    reward_last_updated_timestamp: int
    reward_infos: List[WhirlpoolRewardInfo] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"Whirlpool({self.address}, tick_spacing={self.tick_spacing}, tick={self.tick_current_index})"


@dataclass(frozen=True)
class PositionRewardInfo:
    growth_inside_checkpoint: int
    amount_owed: int


@dataclass(frozen=True)
class Position:
    """Decoded Position account"""
    address: Pubkey
    whirlpool: Pubkey
    position_mint: Pubkey
    liquidity: int
    tick_lower_index: int
    tick_upper_index: int
    fee_growth_checkpoint_a: int
    fee_owed_a: int
    fee_growth_checkpoint_b: int
    fee_owed_b: int
    reward_infos: List[PositionRewardInfo] = field(default_factory=list)


@dataclass(frozen=True)
class Tick:
    initialized: bool
    liquidity_net: int
    liquidity_gross: int
    fee_growth_outside_a: int
    fee_growth_outside_b: int
    reward_growths_outside: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class TickArray:
    """Decoded TickArray account (88 ticks)"""
    address: Pubkey
    start_tick_index: int
    ticks: List[Tick]
    whirlpool: Pubkey

    def get_tick(self, tick_index: int, tick_spacing: int) -> Tick:
        """Tick at `tick_index`, which must fall inside this array"""
        offset = (tick_index - self.start_tick_index) // tick_spacing
        if offset < 0 or offset >= len(self.ticks):
            raise IndexError(
                f"Tick {tick_index} outside array starting at {self.start_tick_index}"
            )
        return self.ticks[offset]


@dataclass(frozen=True)
class FeeTier:
    """Decoded FeeTier account"""
    address: Pubkey
    whirlpools_config: Pubkey
    tick_spacing: int
    default_fee_rate: int


@dataclass(frozen=True)
class WhirlpoolsConfig:
    """Decoded WhirlpoolsConfig account"""
    address: Pubkey
    fee_authority: Pubkey
    collect_protocol_fees_authority: Pubkey
    reward_emissions_super_authority: Pubkey
    default_protocol_fee_rate: int
