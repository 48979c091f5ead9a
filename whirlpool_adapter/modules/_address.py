"""
Address argument helpers shared by the modules
"""

from typing import Optional, Union

from solders.pubkey import Pubkey

from ..errors import PreconditionViolated

AddressLike = Union[str, Pubkey]


def to_pubkey(value: AddressLike, name: str = "address") -> Pubkey:
    """Accept a Pubkey or a base58 string"""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise PreconditionViolated.invalid(name, f"not a valid address: {value!r} ({e})")


def to_optional_pubkey(value: Optional[AddressLike], name: str = "address") -> Optional[Pubkey]:
    return None if value is None else to_pubkey(value, name)
