"""
Common type definitions
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from solders.pubkey import Pubkey


class NativeMintWrappingStrategy(Enum):
    """
    How native SOL is represented when an operation needs wrapped SOL

    NONE: No wrapping; the caller manages a wrapped SOL account
    ATA: Use the owner's associated token account for the native mint
    KEYPAIR: Ephemeral account at a fresh keypair address (extra signer)
    SEED: Ephemeral account at an address derived with create_with_seed
    """
    NONE = "none"
    ATA = "ata"
    KEYPAIR = "keypair"
    SEED = "seed"


@dataclass(frozen=True)
class WithoutBalance:
    """Token account must exist; no balance required"""
    mint: Pubkey


@dataclass(frozen=True)
class WithBalance:
    """Token account must exist and hold at least `amount` raw units"""
    mint: Pubkey
    amount: int


TokenAccountStrategy = Union[WithoutBalance, WithBalance]


@dataclass(frozen=True)
class RawAccount:
    """
    Account as returned by the ledger

    Attributes:
        address: Account address
        owner: Owning program
        lamports: Balance in lamports
        data: Raw account data
        executable: Whether the account holds a program
    """
    address: Pubkey
    owner: Pubkey
    lamports: int
    data: bytes
    executable: bool = False

    def __repr__(self) -> str:
        return f"RawAccount({self.address}, owner={self.owner}, {len(self.data)} bytes)"
