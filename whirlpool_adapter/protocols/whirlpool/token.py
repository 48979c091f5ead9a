"""
Auxiliary token account provisioning

Works out which token accounts an operation needs, emits idempotent
creation for the missing ones, and wraps native SOL according to the
configured NativeMintWrappingStrategy. Ephemeral accounts get a matching
cleanup instruction so they are closed in the same transaction.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ...infra import AccountReader
from ...types import (
    Mint,
    RawAccount,
    NativeMintWrappingStrategy,
    TokenAccountInstructions,
    TokenAccountStrategy,
    TransferFee,
    WithBalance,
    WithoutBalance,
)
from .constants import NATIVE_MINT, TOKEN_PROGRAM_ID, TOKEN_ACCOUNT_SIZE
from .instructions import (
    build_close_account_instruction,
    build_create_ata_idempotent_instruction,
    build_create_token_account_instruction,
    build_initialize_account3_instruction,
    build_sync_native_instruction,
    build_transfer_lamports_instruction,
)
from .parsers import parse_mint, parse_token_account
from .pda import get_associated_token_address

logger = logging.getLogger(__name__)


def order_mints(mint_1: Pubkey, mint_2: Pubkey) -> Tuple[Pubkey, Pubkey]:
    """Canonical mint order: byte-wise smaller mint first"""
    if bytes(mint_1) < bytes(mint_2):
        return mint_1, mint_2
    return mint_2, mint_1


def get_current_transfer_fee(mint: Optional[Mint], current_epoch: int) -> Optional[TransferFee]:
    """Transfer fee in effect for `mint` at `current_epoch`, None if the mint has none"""
    if mint is None or mint.transfer_fee_config is None:
        return None
    fee = mint.transfer_fee_config.get_epoch_fee(current_epoch)
    return TransferFee(fee_bps=fee.transfer_fee_basis_points, max_fee=fee.maximum_fee)


def _merge_strategies(strategies: Sequence[TokenAccountStrategy]) -> List[TokenAccountStrategy]:
    """Collapse repeated mints, summing required balances"""
    merged: Dict[Pubkey, TokenAccountStrategy] = {}
    for strategy in strategies:
        existing = merged.get(strategy.mint)
        if existing is None:
            merged[strategy.mint] = strategy
            continue
        amount = getattr(existing, "amount", 0) + getattr(strategy, "amount", 0)
        if isinstance(existing, WithBalance) or isinstance(strategy, WithBalance):
            merged[strategy.mint] = WithBalance(strategy.mint, amount)
    return list(merged.values())


def _required_balance(strategy: TokenAccountStrategy) -> int:
    return strategy.amount if isinstance(strategy, WithBalance) else 0


def _seed_for_owner() -> str:
    # Millisecond timestamp; unique unless one owner provisions twice in the same ms
    return str(int(time.time() * 1000))


def prepare_token_accounts_instructions(
    reader: AccountReader,
    owner: Pubkey,
    strategies: Sequence[TokenAccountStrategy],
    wrapping_strategy: NativeMintWrappingStrategy = NativeMintWrappingStrategy.KEYPAIR,
) -> TokenAccountInstructions:
    """
    Prepare the token accounts an operation needs

    Args:
        reader: Account reader for this call
        owner: Owner (and payer) of the token accounts
        strategies: One WithoutBalance / WithBalance entry per mint
        wrapping_strategy: How to represent the native mint

    Returns:
        TokenAccountInstructions with create/cleanup instructions, the
        mint -> token account map and any ephemeral signers

    Raises:
        AccountNotFound: A mint does not exist
        ConfigurationError: A mint is owned by an unknown token program
    """
    strategies = _merge_strategies(strategies)
    native_strategy = next((s for s in strategies if s.mint == NATIVE_MINT), None)
    native_via_ata = wrapping_strategy in (
        NativeMintWrappingStrategy.NONE,
        NativeMintWrappingStrategy.ATA,
    )

    # Mints that resolve to an associated token account
    ata_mints = [s.mint for s in strategies if s.mint != NATIVE_MINT or native_via_ata]

    # The native mint is always a legacy Token program mint
    fetch_mints = [m for m in ata_mints if m != NATIVE_MINT]
    token_programs: Dict[Pubkey, Pubkey] = {NATIVE_MINT: TOKEN_PROGRAM_ID}
    for address, raw in zip(fetch_mints, reader.fetch_many(fetch_mints)):
        mint = reader.decode(reader.require(raw, "mint", address), parse_mint)
        token_programs[address] = mint.token_program

    ata_addresses = [
        get_associated_token_address(owner, mint, token_programs[mint]) for mint in ata_mints
    ]
    ata_accounts = reader.fetch_many(ata_addresses)

    result = TokenAccountInstructions()
    existing_ata: Dict[Pubkey, Optional[RawAccount]] = {}

    for mint, ata, raw in zip(ata_mints, ata_addresses, ata_accounts):
        result.token_account_addresses[mint] = ata
        existing_ata[mint] = raw
        if raw is not None:
            continue
        logger.debug(f"Creating associated token account {ata} for mint {mint}")
        result.create_instructions.append(
            build_create_ata_idempotent_instruction(owner, ata, owner, mint, token_programs[mint])
        )

    if native_strategy is None:
        return result

    if wrapping_strategy == NativeMintWrappingStrategy.ATA:
        _wrap_into_ata(reader, owner, native_strategy, existing_ata[NATIVE_MINT], result)
    elif wrapping_strategy == NativeMintWrappingStrategy.KEYPAIR:
        _wrap_into_keypair(reader, owner, native_strategy, result)
    elif wrapping_strategy == NativeMintWrappingStrategy.SEED:
        _wrap_into_seed(reader, owner, native_strategy, result)

    return result


def _wrap_into_ata(
    reader: AccountReader,
    owner: Pubkey,
    strategy: TokenAccountStrategy,
    existing: Optional[RawAccount],
    result: TokenAccountInstructions,
):
    ata = result.token_account_addresses[NATIVE_MINT]
    balance = 0
    if existing is not None:
        balance = reader.decode(existing, parse_token_account).amount

    required = _required_balance(strategy)
    if balance < required:
        shortfall = required - balance
        logger.debug(f"Funding native ATA {ata} with {shortfall} lamports")
        result.create_instructions.append(build_transfer_lamports_instruction(owner, ata, shortfall))
        result.create_instructions.append(build_sync_native_instruction(ata))

    # Only close the ATA if this call created it
    if existing is None:
        result.cleanup_instructions.append(build_close_account_instruction(ata, owner, owner))


def _wrap_into_keypair(
    reader: AccountReader,
    owner: Pubkey,
    strategy: TokenAccountStrategy,
    result: TokenAccountInstructions,
):
    keypair = Keypair()
    account = keypair.pubkey()
    lamports = reader.minimum_balance_for_rent_exemption(TOKEN_ACCOUNT_SIZE) + _required_balance(strategy)

    result.create_instructions.append(
        build_create_token_account_instruction(owner, account, lamports)
    )
    result.create_instructions.append(
        build_initialize_account3_instruction(account, NATIVE_MINT, owner)
    )
    result.cleanup_instructions.append(build_close_account_instruction(account, owner, owner))
    result.token_account_addresses[NATIVE_MINT] = account
    result.additional_signers.append(keypair)
    logger.debug(f"Wrapping native SOL into ephemeral account {account}")


def _wrap_into_seed(
    reader: AccountReader,
    owner: Pubkey,
    strategy: TokenAccountStrategy,
    result: TokenAccountInstructions,
):
    seed = _seed_for_owner()
    account = Pubkey.create_with_seed(owner, seed, TOKEN_PROGRAM_ID)
    lamports = reader.minimum_balance_for_rent_exemption(TOKEN_ACCOUNT_SIZE) + _required_balance(strategy)

    result.create_instructions.append(
        build_create_token_account_instruction(owner, account, lamports, base=owner, seed=seed)
    )
    result.create_instructions.append(
        build_initialize_account3_instruction(account, NATIVE_MINT, owner)
    )
    result.cleanup_instructions.append(build_close_account_instruction(account, owner, owner))
    result.token_account_addresses[NATIVE_MINT] = account
    logger.debug(f"Wrapping native SOL into seeded account {account} (seed={seed})")


__all__ = [
    "NATIVE_MINT",
    "WithoutBalance",
    "WithBalance",
    "order_mints",
    "get_current_transfer_fee",
    "prepare_token_accounts_instructions",
]
