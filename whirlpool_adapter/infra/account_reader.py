"""
On-chain account reader

Thin layer over RpcClient returning RawAccount values. Missing accounts
come back as None; turning absence into an error is the caller's call
(see require()).
"""

import base64
import logging
import struct
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import base58
from solders.pubkey import Pubkey

from ..errors import AccountNotFound, DecodeMismatch, RpcError
from ..types import RawAccount
from .rpc import RpcClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# getMultipleAccounts accepts at most 100 addresses per request
MAX_ACCOUNTS_PER_REQUEST = 100

CLOCK_SYSVAR = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")
CLOCK_SYSVAR_SIZE = 40


def memcmp_filter(offset: int, data: bytes) -> Dict[str, Any]:
    """getProgramAccounts filter matching `data` at `offset`"""
    return {"memcmp": {"offset": offset, "bytes": base58.b58encode(data).decode("ascii")}}


def _decode_account(address: Pubkey, value: Optional[Dict[str, Any]]) -> Optional[RawAccount]:
    """Convert an RPC account object (base64 encoding) into a RawAccount"""
    if value is None:
        return None
    try:
        data_field = value["data"]
        if isinstance(data_field, list):
            data = base64.b64decode(data_field[0])
        else:
            data = base64.b64decode(data_field)
        return RawAccount(
            address=address,
            owner=Pubkey.from_string(value["owner"]),
            lamports=int(value.get("lamports", 0)),
            data=data,
            executable=bool(value.get("executable", False)),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise RpcError.invalid_response("account", f"{address}: {e}")


class AccountReader:
    """
    Reads accounts, rent and epoch state for one call

    Nothing is cached; every method performs a fresh read.

    Usage:
        reader = AccountReader(RpcClient(url))
        raw = reader.fetch_one(address)
        whirlpool = reader.decode(reader.require(raw, "whirlpool", address), parse_whirlpool)
    """

    def __init__(self, rpc: RpcClient):
        self._rpc = rpc

    @property
    def rpc(self) -> RpcClient:
        return self._rpc

    def fetch_one(self, address: Pubkey) -> Optional[RawAccount]:
        """Fetch a single account, None if absent"""
        value = self._rpc.get_account_info(str(address))
        return _decode_account(address, value)

    def fetch_many(self, addresses: Sequence[Pubkey]) -> List[Optional[RawAccount]]:
        """
        Fetch many accounts, preserving input order

        Addresses are sent in chunks of 100 (one round trip each).
        """
        results: List[Optional[RawAccount]] = []
        addresses = list(addresses)
        for start in range(0, len(addresses), MAX_ACCOUNTS_PER_REQUEST):
            chunk = addresses[start:start + MAX_ACCOUNTS_PER_REQUEST]
            values = self._rpc.get_multiple_accounts([str(a) for a in chunk])
            if len(values) != len(chunk):
                raise RpcError.invalid_response(
                    "getMultipleAccounts",
                    f"expected {len(chunk)} accounts, got {len(values)}",
                )
            results.extend(_decode_account(a, v) for a, v in zip(chunk, values))
        return results

    def fetch_program_accounts(
        self,
        program_id: Pubkey,
        filters: Optional[List[Dict[str, Any]]] = None,
    ) -> List[RawAccount]:
        """Fetch all accounts owned by `program_id` matching `filters`"""
        entries = self._rpc.get_program_accounts(str(program_id), filters=filters)
        accounts = []
        for entry in entries:
            address = Pubkey.from_string(entry["pubkey"])
            accounts.append(_decode_account(address, entry["account"]))
        return accounts

    def fetch_token_accounts_by_owner(self, owner: Pubkey, token_program: Pubkey) -> List[RawAccount]:
        """Token accounts of `owner` under one token program"""
        entries = self._rpc.get_token_accounts_by_owner(str(owner), program_id=str(token_program))
        accounts = []
        for entry in entries:
            address = Pubkey.from_string(entry["pubkey"])
            accounts.append(_decode_account(address, entry["account"]))
        return accounts

    def minimum_balance_for_rent_exemption(self, data_size: int) -> int:
        return self._rpc.get_minimum_balance_for_rent_exemption(data_size)

    def current_epoch(self) -> int:
        info = self._rpc.get_epoch_info()
        if "epoch" not in info:
            raise RpcError.invalid_response("getEpochInfo", "missing epoch")
        return int(info["epoch"])

    def current_unix_timestamp(self) -> int:
        """Cluster time from the Clock sysvar"""
        raw = self.require(self.fetch_one(CLOCK_SYSVAR), "clock", CLOCK_SYSVAR)
        if len(raw.data) < CLOCK_SYSVAR_SIZE:
            raise DecodeMismatch(
                f"Clock sysvar is {len(raw.data)} bytes, expected {CLOCK_SYSVAR_SIZE}",
                address=str(CLOCK_SYSVAR),
                layout="Clock",
            )
        return struct.unpack_from("<q", raw.data, 32)[0]

    @staticmethod
    def require(raw: Optional[RawAccount], kind: str, address: Pubkey) -> RawAccount:
        """Turn an absent account into AccountNotFound"""
        if raw is not None:
            return raw
        if kind == "mint":
            raise AccountNotFound.mint(str(address))
        if kind == "whirlpool":
            raise AccountNotFound.pool(str(address))
        if kind == "position":
            raise AccountNotFound.position(str(address))
        raise AccountNotFound.account(kind, str(address))

    @staticmethod
    def decode(raw: RawAccount, decoder: Callable[[RawAccount], T]) -> T:
        """Run a decoder, reporting malformed data as DecodeMismatch"""
        try:
            return decoder(raw)
        except DecodeMismatch:
            raise
        except (ValueError, IndexError, struct.error) as e:
            name = getattr(decoder, "__name__", "account")
            raise DecodeMismatch(
                f"Failed to decode {raw.address} with {name}: {e}",
                address=str(raw.address),
                layout=name,
                original_error=e,
            )
