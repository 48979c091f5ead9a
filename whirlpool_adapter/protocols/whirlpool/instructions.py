"""
Whirlpool Instruction Builders

Each builder returns a single solders Instruction. Account order follows
the Whirlpool program's Anchor account structs; the index comments match
the on-chain ordering.
"""

import struct
from typing import Optional

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey
from solders.system_program import (
    transfer,
    TransferParams,
    create_account,
    CreateAccountParams,
    create_account_with_seed,
    CreateAccountWithSeedParams,
)

from .constants import (
    WHIRLPOOL_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    RENT_SYSVAR_ID,
    MEMO_PROGRAM_ID,
    WP_NFT_UPDATE_AUTH,
    DISCRIMINATORS,
    TOKEN_ACCOUNT_SIZE,
    TOKEN_IX_INITIALIZE_ACCOUNT3,
    TOKEN_IX_SYNC_NATIVE,
    TOKEN_IX_CLOSE_ACCOUNT,
    ATA_IX_CREATE_IDEMPOTENT,
)

# remaining_accounts_info: Option<RemainingAccountsInfo> encoded as None
_NO_REMAINING_ACCOUNTS = bytes([0])


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


# ---------------------------------------------------------------------------
# Whirlpool program
# ---------------------------------------------------------------------------

def build_initialize_pool_v2_instruction(
    whirlpools_config: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_badge_a: Pubkey,
    token_badge_b: Pubkey,
    funder: Pubkey,
    whirlpool: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    fee_tier: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    tick_spacing: int,
    initial_sqrt_price: int,
) -> Instruction:
    """
    Build initialize_pool_v2 instruction

    Both vaults are fresh keypairs and must sign.
    """
    accounts = [
        AccountMeta(whirlpools_config, is_signer=False, is_writable=False),  # 0
        AccountMeta(token_mint_a, is_signer=False, is_writable=False),  # 1
        AccountMeta(token_mint_b, is_signer=False, is_writable=False),  # 2
        AccountMeta(token_badge_a, is_signer=False, is_writable=False),  # 3
        AccountMeta(token_badge_b, is_signer=False, is_writable=False),  # 4
        AccountMeta(funder, is_signer=True, is_writable=True),  # 5
        AccountMeta(whirlpool, is_signer=False, is_writable=True),  # 6
        AccountMeta(token_vault_a, is_signer=True, is_writable=True),  # 7
        AccountMeta(token_vault_b, is_signer=True, is_writable=True),  # 8
        AccountMeta(fee_tier, is_signer=False, is_writable=False),  # 9
        AccountMeta(token_program_a, is_signer=False, is_writable=False),  # 10
        AccountMeta(token_program_b, is_signer=False, is_writable=False),  # 11
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),  # 12
        AccountMeta(RENT_SYSVAR_ID, is_signer=False, is_writable=False),  # 13
    ]

    data = bytearray(DISCRIMINATORS["initialize_pool_v2"])
    data.extend(struct.pack("<H", tick_spacing))
    data.extend(_u128(initial_sqrt_price))

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def build_initialize_tick_array_instruction(
    whirlpool: Pubkey,
    funder: Pubkey,
    tick_array: Pubkey,
    start_tick_index: int,
) -> Instruction:
    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=False),  # 0
        AccountMeta(funder, is_signer=True, is_writable=True),  # 1
        AccountMeta(tick_array, is_signer=False, is_writable=True),  # 2
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),  # 3
    ]

    data = bytearray(DISCRIMINATORS["initialize_tick_array"])
    data.extend(struct.pack("<i", start_tick_index))

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def build_open_position_with_token_extensions_instruction(
    funder: Pubkey,
    owner: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
    whirlpool: Pubkey,
    tick_lower_index: int,
    tick_upper_index: int,
    with_token_metadata_extension: bool = True,
) -> Instruction:
    """
    Build open_position_with_token_extensions instruction

    The position NFT is a Token-2022 mint created by this instruction, so
    position_mint must sign.
    """
    accounts = [
        AccountMeta(funder, is_signer=True, is_writable=True),  # 0
        AccountMeta(owner, is_signer=False, is_writable=False),  # 1
        AccountMeta(position, is_signer=False, is_writable=True),  # 2
        AccountMeta(position_mint, is_signer=True, is_writable=True),  # 3
        AccountMeta(position_token_account, is_signer=False, is_writable=True),  # 4
        AccountMeta(whirlpool, is_signer=False, is_writable=False),  # 5
        AccountMeta(TOKEN_2022_PROGRAM_ID, is_signer=False, is_writable=False),  # 6
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),  # 7
        AccountMeta(ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),  # 8
        AccountMeta(WP_NFT_UPDATE_AUTH, is_signer=False, is_writable=False),  # 9
    ]

    data = bytearray(DISCRIMINATORS["open_position_with_token_extensions"])
    data.extend(struct.pack("<ii?", tick_lower_index, tick_upper_index, with_token_metadata_extension))

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def _modify_liquidity_v2(
    name: str,
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
    liquidity_amount: int,
    token_amount_a: int,
    token_amount_b: int,
) -> Instruction:
    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=True),  # 0
        AccountMeta(token_program_a, is_signer=False, is_writable=False),  # 1
        AccountMeta(token_program_b, is_signer=False, is_writable=False),  # 2
        AccountMeta(MEMO_PROGRAM_ID, is_signer=False, is_writable=False),  # 3
        AccountMeta(position_authority, is_signer=True, is_writable=False),  # 4
        AccountMeta(position, is_signer=False, is_writable=True),  # 5
        AccountMeta(position_token_account, is_signer=False, is_writable=False),  # 6
        AccountMeta(token_mint_a, is_signer=False, is_writable=False),  # 7
        AccountMeta(token_mint_b, is_signer=False, is_writable=False),  # 8
        AccountMeta(token_owner_account_a, is_signer=False, is_writable=True),  # 9
        AccountMeta(token_owner_account_b, is_signer=False, is_writable=True),  # 10
        AccountMeta(token_vault_a, is_signer=False, is_writable=True),  # 11
        AccountMeta(token_vault_b, is_signer=False, is_writable=True),  # 12
        AccountMeta(tick_array_lower, is_signer=False, is_writable=True),  # 13
        AccountMeta(tick_array_upper, is_signer=False, is_writable=True),  # 14
    ]

    data = bytearray(DISCRIMINATORS[name])
    data.extend(_u128(liquidity_amount))
    data.extend(struct.pack("<QQ", token_amount_a, token_amount_b))
    data.extend(_NO_REMAINING_ACCOUNTS)

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def build_increase_liquidity_v2_instruction(
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
    liquidity_amount: int,
    token_max_a: int,
    token_max_b: int,
) -> Instruction:
    """Build increase_liquidity_v2 (args: liquidity, token_max_a, token_max_b)"""
    return _modify_liquidity_v2(
        "increase_liquidity_v2",
        whirlpool, token_program_a, token_program_b, position_authority, position,
        position_token_account, token_mint_a, token_mint_b,
        token_owner_account_a, token_owner_account_b, token_vault_a, token_vault_b,
        tick_array_lower, tick_array_upper,
        liquidity_amount, token_max_a, token_max_b,
    )


def build_decrease_liquidity_v2_instruction(
    whirlpool: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
    liquidity_amount: int,
    token_min_a: int,
    token_min_b: int,
) -> Instruction:
    """Build decrease_liquidity_v2 (args: liquidity, token_min_a, token_min_b)"""
    return _modify_liquidity_v2(
        "decrease_liquidity_v2",
        whirlpool, token_program_a, token_program_b, position_authority, position,
        position_token_account, token_mint_a, token_mint_b,
        token_owner_account_a, token_owner_account_b, token_vault_a, token_vault_b,
        tick_array_lower, tick_array_upper,
        liquidity_amount, token_min_a, token_min_b,
    )


def build_update_fees_and_rewards_instruction(
    whirlpool: Pubkey,
    position: Pubkey,
    tick_array_lower: Pubkey,
    tick_array_upper: Pubkey,
) -> Instruction:
    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=True),  # 0
        AccountMeta(position, is_signer=False, is_writable=True),  # 1
        AccountMeta(tick_array_lower, is_signer=False, is_writable=False),  # 2
        AccountMeta(tick_array_upper, is_signer=False, is_writable=False),  # 3
    ]
    return Instruction(
        WHIRLPOOL_PROGRAM_ID, bytes(DISCRIMINATORS["update_fees_and_rewards"]), accounts
    )


def build_collect_fees_v2_instruction(
    whirlpool: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_owner_account_a: Pubkey,
    token_vault_a: Pubkey,
    token_owner_account_b: Pubkey,
    token_vault_b: Pubkey,
    token_program_a: Pubkey,
    token_program_b: Pubkey,
) -> Instruction:
    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=False),  # 0
        AccountMeta(position_authority, is_signer=True, is_writable=False),  # 1
        AccountMeta(position, is_signer=False, is_writable=True),  # 2
        AccountMeta(position_token_account, is_signer=False, is_writable=False),  # 3
        AccountMeta(token_mint_a, is_signer=False, is_writable=False),  # 4
        AccountMeta(token_mint_b, is_signer=False, is_writable=False),  # 5
        AccountMeta(token_owner_account_a, is_signer=False, is_writable=True),  # 6
        AccountMeta(token_vault_a, is_signer=False, is_writable=True),  # 7
        AccountMeta(token_owner_account_b, is_signer=False, is_writable=True),  # 8
        AccountMeta(token_vault_b, is_signer=False, is_writable=True),  # 9
        AccountMeta(token_program_a, is_signer=False, is_writable=False),  # 10
        AccountMeta(token_program_b, is_signer=False, is_writable=False),  # 11
        AccountMeta(MEMO_PROGRAM_ID, is_signer=False, is_writable=False),  # 12
    ]

    data = bytearray(DISCRIMINATORS["collect_fees_v2"])
    data.extend(_NO_REMAINING_ACCOUNTS)

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def build_collect_reward_v2_instruction(
    whirlpool: Pubkey,
    position_authority: Pubkey,
    position: Pubkey,
    position_token_account: Pubkey,
    reward_owner_account: Pubkey,
    reward_mint: Pubkey,
    reward_vault: Pubkey,
    reward_token_program: Pubkey,
    reward_index: int,
) -> Instruction:
    accounts = [
        AccountMeta(whirlpool, is_signer=False, is_writable=False),  # 0
        AccountMeta(position_authority, is_signer=True, is_writable=False),  # 1
        AccountMeta(position, is_signer=False, is_writable=True),  # 2
        AccountMeta(position_token_account, is_signer=False, is_writable=False),  # 3
        AccountMeta(reward_owner_account, is_signer=False, is_writable=True),  # 4
        AccountMeta(reward_mint, is_signer=False, is_writable=False),  # 5
        AccountMeta(reward_vault, is_signer=False, is_writable=True),  # 6
        AccountMeta(reward_token_program, is_signer=False, is_writable=False),  # 7
        AccountMeta(MEMO_PROGRAM_ID, is_signer=False, is_writable=False),  # 8
    ]

    data = bytearray(DISCRIMINATORS["collect_reward_v2"])
    data.append(reward_index)
    data.extend(_NO_REMAINING_ACCOUNTS)

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(data), accounts)


def build_close_position_instruction(
    position_authority: Pubkey,
    receiver: Pubkey,
    position: Pubkey,
    position_mint: Pubkey,
    position_token_account: Pubkey,
    position_token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build close_position instruction

    Positions minted under Token-2022 use close_position_with_token_extensions,
    which burns the mint as well as the token account.
    """
    if position_token_program == TOKEN_2022_PROGRAM_ID:
        name = "close_position_with_token_extensions"
    else:
        name = "close_position"

    accounts = [
        AccountMeta(position_authority, is_signer=True, is_writable=False),  # 0
        AccountMeta(receiver, is_signer=False, is_writable=True),  # 1
        AccountMeta(position, is_signer=False, is_writable=True),  # 2
        AccountMeta(position_mint, is_signer=False, is_writable=True),  # 3
        AccountMeta(position_token_account, is_signer=False, is_writable=True),  # 4
        AccountMeta(position_token_program, is_signer=False, is_writable=False),  # 5
    ]

    return Instruction(WHIRLPOOL_PROGRAM_ID, bytes(DISCRIMINATORS[name]), accounts)


# ---------------------------------------------------------------------------
# SPL Token / Associated Token / System
# ---------------------------------------------------------------------------

def build_create_ata_idempotent_instruction(
    payer: Pubkey,
    ata: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    Creates the ATA if it doesn't exist, or does nothing if it does.
    """
    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(ata, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(token_program, is_signer=False, is_writable=False),
    ]
    return Instruction(ASSOCIATED_TOKEN_PROGRAM_ID, bytes([ATA_IX_CREATE_IDEMPOTENT]), accounts)


def build_initialize_account3_instruction(
    account: Pubkey,
    mint: Pubkey,
    owner: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=False),
    ]
    data = bytes([TOKEN_IX_INITIALIZE_ACCOUNT3]) + bytes(owner)
    return Instruction(token_program, data, accounts)


def build_sync_native_instruction(
    account: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    accounts = [AccountMeta(account, is_signer=False, is_writable=True)]
    return Instruction(token_program, bytes([TOKEN_IX_SYNC_NATIVE]), accounts)


def build_close_account_instruction(
    account: Pubkey,
    destination: Pubkey,
    owner: Pubkey,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Close a token account, returning its lamports to `destination`"""
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=True, is_writable=False),
    ]
    return Instruction(token_program, bytes([TOKEN_IX_CLOSE_ACCOUNT]), accounts)


def build_transfer_lamports_instruction(source: Pubkey, destination: Pubkey, lamports: int) -> Instruction:
    return transfer(TransferParams(from_pubkey=source, to_pubkey=destination, lamports=lamports))


def build_create_token_account_instruction(
    payer: Pubkey,
    account: Pubkey,
    lamports: int,
    token_program: Pubkey = TOKEN_PROGRAM_ID,
    base: Optional[Pubkey] = None,
    seed: Optional[str] = None,
) -> Instruction:
    """
    Allocate a token-account-sized account owned by `token_program`

    With `seed` the address is derived from `base` and the seed
    (CreateAccountWithSeed) and needs no extra signer.
    """
    if seed is None:
        return create_account(CreateAccountParams(
            from_pubkey=payer,
            to_pubkey=account,
            lamports=lamports,
            space=TOKEN_ACCOUNT_SIZE,
            owner=token_program,
        ))
    return create_account_with_seed(CreateAccountWithSeedParams(
        from_pubkey=payer,
        to_pubkey=account,
        base=base or payer,
        seed=seed,
        lamports=lamports,
        space=TOKEN_ACCOUNT_SIZE,
        owner=token_program,
    ))
