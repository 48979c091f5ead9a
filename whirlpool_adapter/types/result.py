"""
Instruction batch result types

Every pipeline returns an unsigned, ordered instruction list plus the
ephemeral keypairs that must co-sign it.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .pool import PoolInfo
from .quote import (
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    CollectFeesQuote,
    CollectRewardsQuote,
)


@dataclass
class TokenAccountInstructions:
    """
    Auxiliary token account provisioning output

    Attributes:
        create_instructions: Run before the protocol instruction(s)
        cleanup_instructions: Run after the protocol instruction(s)
        token_account_addresses: Mint -> token account to use
        additional_signers: Ephemeral keypairs that must sign
    """
    create_instructions: List[Instruction] = field(default_factory=list)
    cleanup_instructions: List[Instruction] = field(default_factory=list)
    token_account_addresses: Dict[Pubkey, Pubkey] = field(default_factory=dict)
    additional_signers: List[Keypair] = field(default_factory=list)


@dataclass
class InstructionBatch:
    """
    Ordered, unsigned instruction batch

    Attributes:
        instructions: Instructions in execution order
        additional_signers: Keypairs that must sign besides the authority
        estimated_cost_lamports: Rent the batch locks up (0 if none)
        primary_address: Main account the batch acts on
    """
    instructions: List[Instruction]
    additional_signers: List[Keypair]
    primary_address: Pubkey
    estimated_cost_lamports: int = 0

    @property
    def signer_pubkeys(self) -> List[Pubkey]:
        return [kp.pubkey() for kp in self.additional_signers]

    def __len__(self) -> int:
        return len(self.instructions)


@dataclass
class CreatePoolInstructions(InstructionBatch):
    """Create pool output; primary_address is the pool"""
    initial_price: float = 1.0

    @property
    def pool_address(self) -> Pubkey:
        return self.primary_address


@dataclass
class OpenPositionInstructions(InstructionBatch):
    """Open position output; primary_address is the position"""
    quote: IncreaseLiquidityQuote = None
    position_mint: Pubkey = None
    tick_lower_index: int = 0
    tick_upper_index: int = 0

    @property
    def initialization_cost(self) -> int:
        return self.estimated_cost_lamports


@dataclass
class IncreaseLiquidityInstructions(InstructionBatch):
    quote: IncreaseLiquidityQuote = None


@dataclass
class DecreaseLiquidityInstructions(InstructionBatch):
    quote: DecreaseLiquidityQuote = None


@dataclass
class HarvestPositionInstructions(InstructionBatch):
    fees_quote: CollectFeesQuote = None
    rewards_quote: CollectRewardsQuote = None


@dataclass
class ClosePositionInstructions(InstructionBatch):
    quote: DecreaseLiquidityQuote = None
    fees_quote: CollectFeesQuote = None
    rewards_quote: CollectRewardsQuote = None


__all__ = [
    "TokenAccountInstructions",
    "InstructionBatch",
    "CreatePoolInstructions",
    "OpenPositionInstructions",
    "IncreaseLiquidityInstructions",
    "DecreaseLiquidityInstructions",
    "HarvestPositionInstructions",
    "ClosePositionInstructions",
    "PoolInfo",
]
