"""
Position discovery

Reads Position accounts by NFT mint, by wallet (through the wallet's
position NFTs) or by pool.
"""

import logging
from typing import List

from solders.pubkey import Pubkey

from ...infra import AccountReader, memcmp_filter
from ...types import Position
from .constants import (
    ACCOUNT_DISCRIMINATORS,
    POSITION_SIZE,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    WHIRLPOOL_PROGRAM_ID,
)
from .parsers import parse_position, parse_token_account
from .pda import get_position_address

logger = logging.getLogger(__name__)

# Position.whirlpool follows the 8-byte discriminator
_POSITION_WHIRLPOOL_OFFSET = 8


def fetch_position(reader: AccountReader, position_mint_address: Pubkey) -> Position:
    """
    Position account for a position NFT mint

    Raises:
        AccountNotFound: No position exists for the mint
        DecodeMismatch: The account is not a Position
    """
    position_address, _ = get_position_address(position_mint_address)
    raw = reader.require(reader.fetch_one(position_address), "position", position_address)
    return reader.decode(raw, parse_position)


def fetch_positions_for_owner(reader: AccountReader, owner: Pubkey) -> List[Position]:
    """
    Positions held by a wallet

    Scans the wallet's token accounts under both token programs, keeps the
    ones holding exactly one token and reads the Position derived from each
    mint. Tokens that are not position NFTs are skipped.
    """
    candidates: List[Pubkey] = []
    seen = set()
    for token_program in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
        for raw in reader.fetch_token_accounts_by_owner(owner, token_program):
            token_account = reader.decode(raw, parse_token_account)
            if token_account.amount != 1 or token_account.mint in seen:
                continue
            seen.add(token_account.mint)
            candidates.append(token_account.mint)

    if not candidates:
        return []

    position_addresses = [get_position_address(mint)[0] for mint in candidates]
    raws = reader.fetch_many(position_addresses)

    discriminator = ACCOUNT_DISCRIMINATORS["Position"]
    positions = []
    for mint, address, raw in zip(candidates, position_addresses, raws):
        if raw is None or raw.owner != WHIRLPOOL_PROGRAM_ID or raw.data[:8] != discriminator:
            logger.debug(f"Mint {mint} is not a position NFT")
            continue
        positions.append(reader.decode(raw, parse_position))

    logger.debug(f"Owner {owner}: {len(candidates)} NFT candidates, {len(positions)} positions")
    return positions


def fetch_positions_in_whirlpool(reader: AccountReader, whirlpool: Pubkey) -> List[Position]:
    """All positions opened in a pool (one getProgramAccounts call)"""
    raws = reader.fetch_program_accounts(
        WHIRLPOOL_PROGRAM_ID,
        filters=[
            {"dataSize": POSITION_SIZE},
            memcmp_filter(0, ACCOUNT_DISCRIMINATORS["Position"]),
            memcmp_filter(_POSITION_WHIRLPOOL_OFFSET, bytes(whirlpool)),
        ],
    )
    positions = [reader.decode(raw, parse_position) for raw in raws]
    logger.debug(f"Whirlpool {whirlpool}: {len(positions)} positions")
    return positions
