"""
In-memory ledger for unit tests

FakeLedgerRpc answers the read-only RpcClient methods the account reader
uses from a dict of accounts, so pipelines run against real account bytes
without a network. The encode_* helpers write accounts in the on-chain
layouts the parsers read.
"""

import base64
import struct
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import base58
from solders.pubkey import Pubkey

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from whirlpool_adapter.protocols.whirlpool.constants import (
    ACCOUNT_DISCRIMINATORS,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    WHIRLPOOL_PROGRAM_ID,
    TICK_ARRAY_SIZE,
)


RENT_PER_BYTE = 6960


def rent_for(size: int) -> int:
    """Deterministic rent figure used by the fake ledger"""
    return (size + 128) * RENT_PER_BYTE


class FakeLedgerRpc:
    """
    Read-only stand-in for RpcClient

    Usage:
        rpc = FakeLedgerRpc(epoch=500)
        rpc.put(mint_address, TOKEN_PROGRAM_ID, encode_mint(decimals=6))
        reader = AccountReader(rpc)
    """

    def __init__(self, epoch: int = 500, unix_timestamp: Optional[int] = None):
        self.accounts: Dict[str, dict] = {}
        self.epoch = epoch
        self.calls: List[str] = []
        if unix_timestamp is not None:
            clock = bytearray(40)
            struct.pack_into("<q", clock, 32, unix_timestamp)
            self.put(
                Pubkey.from_string("SysvarC1ock11111111111111111111111111111111"),
                Pubkey.from_string("Sysvar1111111111111111111111111111111111111"),
                bytes(clock),
            )

    def put(self, address: Pubkey, owner: Pubkey, data: bytes, lamports: int = 1_000_000):
        self.accounts[str(address)] = {
            "data": [base64.b64encode(data).decode("ascii"), "base64"],
            "owner": str(owner),
            "lamports": lamports,
            "executable": False,
        }

    def remove(self, address: Pubkey):
        self.accounts.pop(str(address), None)

    def get_account_info(self, address: str, **kwargs) -> Optional[dict]:
        self.calls.append("getAccountInfo")
        return self.accounts.get(address)

    def get_multiple_accounts(self, addresses: Sequence[str], **kwargs) -> List[Optional[dict]]:
        self.calls.append("getMultipleAccounts")
        return [self.accounts.get(a) for a in addresses]

    def get_program_accounts(self, program_id: str, filters=None, **kwargs) -> List[dict]:
        self.calls.append("getProgramAccounts")
        matches = []
        for address, account in self.accounts.items():
            if account["owner"] != program_id:
                continue
            data = base64.b64decode(account["data"][0])
            if all(self._matches(data, f) for f in (filters or [])):
                matches.append({"pubkey": address, "account": account})
        return matches

    def get_token_accounts_by_owner(
        self,
        owner: str,
        mint: Optional[str] = None,
        program_id: Optional[str] = None,
        **kwargs,
    ) -> List[dict]:
        self.calls.append("getTokenAccountsByOwner")
        owner_bytes = bytes(Pubkey.from_string(owner))
        matches = []
        for address, account in self.accounts.items():
            if account["owner"] not in (str(TOKEN_PROGRAM_ID), str(TOKEN_2022_PROGRAM_ID)):
                continue
            if program_id is not None and account["owner"] != program_id:
                continue
            data = base64.b64decode(account["data"][0])
            if len(data) < 165 or data[32:64] != owner_bytes:
                continue
            if mint is not None and data[0:32] != bytes(Pubkey.from_string(mint)):
                continue
            matches.append({"pubkey": address, "account": account})
        return matches

    @staticmethod
    def _matches(data: bytes, rpc_filter: dict) -> bool:
        if "dataSize" in rpc_filter:
            return len(data) == rpc_filter["dataSize"]
        memcmp = rpc_filter["memcmp"]
        expected = base58.b58decode(memcmp["bytes"])
        offset = memcmp["offset"]
        return data[offset:offset + len(expected)] == expected

    def get_minimum_balance_for_rent_exemption(self, data_size: int, **kwargs) -> int:
        self.calls.append("getMinimumBalanceForRentExemption")
        return rent_for(data_size)

    def get_epoch_info(self, **kwargs) -> dict:
        self.calls.append("getEpochInfo")
        return {"epoch": self.epoch, "slotIndex": 0, "slotsInEpoch": 432000}

    def close(self):
        pass


# ---------------------------------------------------------------------------
# SPL Token layouts
# ---------------------------------------------------------------------------

def encode_mint(
    decimals: int = 6,
    supply: int = 1_000_000_000,
    transfer_fee: Optional[dict] = None,
) -> bytes:
    """
    Mint account bytes

    transfer_fee (Token-2022 only) is a dict with older/newer entries of
    (epoch, maximum_fee, basis_points).
    """
    data = bytearray(82)
    struct.pack_into("<Q", data, 36, supply)
    data[44] = decimals
    data[45] = 1
    if transfer_fee is None:
        return bytes(data)

    data = data + bytearray(165 - 82)
    data += bytes([1])  # account type: mint
    extension = bytearray(108)
    struct.pack_into("<Q", extension, 64, 0)
    struct.pack_into("<QQH", extension, 72, *transfer_fee["older"])
    struct.pack_into("<QQH", extension, 90, *transfer_fee["newer"])
    data += struct.pack("<HH", 1, len(extension)) + extension
    return bytes(data)


def encode_token_account(mint: Pubkey, owner: Pubkey, amount: int = 0) -> bytes:
    data = bytearray(165)
    data[0:32] = bytes(mint)
    data[32:64] = bytes(owner)
    struct.pack_into("<Q", data, 64, amount)
    data[108] = 1  # initialized
    return bytes(data)


# ---------------------------------------------------------------------------
# Whirlpool layouts
# ---------------------------------------------------------------------------

def _u128(value: int) -> bytes:
    return (value % (1 << 128)).to_bytes(16, "little")


def encode_whirlpool(
    whirlpools_config: Pubkey,
    token_mint_a: Pubkey,
    token_mint_b: Pubkey,
    token_vault_a: Pubkey,
    token_vault_b: Pubkey,
    tick_spacing: int = 64,
    sqrt_price: int = 1 << 64,
    tick_current_index: int = 0,
    liquidity: int = 0,
    fee_rate: int = 3000,
    protocol_fee_rate: int = 300,
    fee_growth_global_a: int = 0,
    fee_growth_global_b: int = 0,
    reward_last_updated_timestamp: int = 0,
    rewards: Optional[List[dict]] = None,
) -> bytes:
    """
    Whirlpool account bytes (653)

    rewards: up to three dicts with mint, vault and optional
    emissions_per_second_x64 / growth_global_x64.
    """
    data = bytearray(ACCOUNT_DISCRIMINATORS["Whirlpool"])
    data += bytes(whirlpools_config)
    data += bytes([255])
    data += struct.pack("<HHHH", tick_spacing, tick_spacing, fee_rate, protocol_fee_rate)
    data += _u128(liquidity)
    data += _u128(sqrt_price)
    data += struct.pack("<i", tick_current_index)
    data += struct.pack("<QQ", 0, 0)
    data += bytes(token_mint_a) + bytes(token_vault_a) + _u128(fee_growth_global_a)
    data += bytes(token_mint_b) + bytes(token_vault_b) + _u128(fee_growth_global_b)
    data += struct.pack("<Q", reward_last_updated_timestamp)

    rewards = list(rewards or [])
    for i in range(3):
        if i < len(rewards):
            reward = rewards[i]
            data += bytes(reward["mint"]) + bytes(reward["vault"]) + bytes(32)
            data += _u128(reward.get("emissions_per_second_x64", 0))
            data += _u128(reward.get("growth_global_x64", 0))
        else:
            data += bytes(128)

    assert len(data) == 653
    return bytes(data)


def encode_position(
    whirlpool: Pubkey,
    position_mint: Pubkey,
    tick_lower_index: int,
    tick_upper_index: int,
    liquidity: int = 0,
    fee_owed_a: int = 0,
    fee_owed_b: int = 0,
    reward_owed: Sequence[int] = (0, 0, 0),
) -> bytes:
    """Position account bytes (216)"""
    data = bytearray(ACCOUNT_DISCRIMINATORS["Position"])
    data += bytes(whirlpool) + bytes(position_mint)
    data += _u128(liquidity)
    data += struct.pack("<ii", tick_lower_index, tick_upper_index)
    data += _u128(0) + struct.pack("<Q", fee_owed_a)
    data += _u128(0) + struct.pack("<Q", fee_owed_b)
    for owed in reward_owed:
        data += _u128(0) + struct.pack("<Q", owed)
    assert len(data) == 216
    return bytes(data)


def encode_tick_array(whirlpool: Pubkey, start_tick_index: int) -> bytes:
    """TickArray account bytes (9988), every tick uninitialized"""
    data = bytearray(ACCOUNT_DISCRIMINATORS["TickArray"])
    data += struct.pack("<i", start_tick_index)
    data += bytes(113 * TICK_ARRAY_SIZE)
    data += bytes(whirlpool)
    assert len(data) == 9988
    return bytes(data)


def encode_fee_tier(whirlpools_config: Pubkey, tick_spacing: int, default_fee_rate: int) -> bytes:
    data = bytearray(ACCOUNT_DISCRIMINATORS["FeeTier"])
    data += bytes(whirlpools_config)
    data += struct.pack("<HH", tick_spacing, default_fee_rate)
    assert len(data) == 44
    return bytes(data)


def encode_whirlpools_config(default_protocol_fee_rate: int = 300) -> bytes:
    data = bytearray(ACCOUNT_DISCRIMINATORS["WhirlpoolsConfig"])
    data += bytes(32 * 3)
    data += struct.pack("<H", default_protocol_fee_rate)
    data += bytes(2)
    assert len(data) == 108
    return bytes(data)


def put_mint(rpc: FakeLedgerRpc, address: Pubkey, decimals: int = 6, token_2022: bool = False, **kwargs):
    owner = TOKEN_2022_PROGRAM_ID if token_2022 else TOKEN_PROGRAM_ID
    rpc.put(address, owner, encode_mint(decimals=decimals, **kwargs))


def put_whirlpool_account(rpc: FakeLedgerRpc, address: Pubkey, data: bytes):
    rpc.put(address, WHIRLPOOL_PROGRAM_ID, data)


def build_position_ledger(
    liquidity: int = 1_000_000_000,
    tick_lower_index: int = -128,
    tick_upper_index: int = 128,
    tick_spacing: int = 64,
    fee_owed: Sequence[int] = (0, 0),
    reward_count: int = 0,
    reward_owed: Sequence[int] = (0, 0, 0),
    token_mint_a: Optional[Pubkey] = None,
    token_mint_b: Optional[Pubkey] = None,
    position_token_2022: bool = False,
    unix_timestamp: int = 1_700_000_000,
) -> dict:
    """
    Ledger holding one pool and one position in it

    Returns a dict with the rpc and every address a test needs.
    """
    from solders.keypair import Keypair
    from whirlpool_adapter.protocols.whirlpool.math import get_tick_array_start_tick_index
    from whirlpool_adapter.protocols.whirlpool.pda import (
        get_position_address,
        get_tick_array_address,
        get_whirlpool_address,
    )
    from whirlpool_adapter.protocols.whirlpool.token import order_mints

    rpc = FakeLedgerRpc(unix_timestamp=unix_timestamp)
    config_address = Keypair().pubkey()

    mint_a, mint_b = order_mints(
        token_mint_a or Keypair().pubkey(),
        token_mint_b or Keypair().pubkey(),
    )
    put_mint(rpc, mint_a, decimals=9)
    put_mint(rpc, mint_b, decimals=6)

    pool_address, _ = get_whirlpool_address(config_address, mint_a, mint_b, tick_spacing)
    rewards = []
    for _ in range(reward_count):
        reward_mint = Keypair().pubkey()
        put_mint(rpc, reward_mint, decimals=6)
        rewards.append({"mint": reward_mint, "vault": Keypair().pubkey()})

    put_whirlpool_account(rpc, pool_address, encode_whirlpool(
        config_address,
        mint_a,
        mint_b,
        Keypair().pubkey(),
        Keypair().pubkey(),
        tick_spacing=tick_spacing,
        liquidity=liquidity,
        reward_last_updated_timestamp=unix_timestamp,
        rewards=rewards,
    ))

    position_mint = Keypair().pubkey()
    put_mint(rpc, position_mint, decimals=0, supply=1, token_2022=position_token_2022)
    position_address, _ = get_position_address(position_mint)
    put_whirlpool_account(rpc, position_address, encode_position(
        pool_address,
        position_mint,
        tick_lower_index,
        tick_upper_index,
        liquidity=liquidity,
        fee_owed_a=fee_owed[0],
        fee_owed_b=fee_owed[1],
        reward_owed=reward_owed,
    ))

    tick_arrays = []
    for tick_index in (tick_lower_index, tick_upper_index):
        start = get_tick_array_start_tick_index(tick_index, tick_spacing)
        tick_array, _ = get_tick_array_address(pool_address, start)
        put_whirlpool_account(rpc, tick_array, encode_tick_array(pool_address, start))
        tick_arrays.append(tick_array)

    return {
        "rpc": rpc,
        "config": config_address,
        "pool": pool_address,
        "mint_a": mint_a,
        "mint_b": mint_b,
        "reward_mints": [r["mint"] for r in rewards],
        "position_mint": position_mint,
        "position": position_address,
        "tick_arrays": tick_arrays,
        "owner": Keypair().pubkey(),
    }
