# src/faircoin/ledger/address.py
from __future__ import annotations

from typing import Any

from eth_utils import is_hex_address, to_canonical_address

from faircoin.runtime.errors import ContractError

NULL_ADDRESS: str = "0x" + "00" * 20


def is_address(v: Any) -> bool:
    """True for a 0x-prefixed, 40 hex char string (any case, checksum not enforced)."""
    if not isinstance(v, str):
        return False
    s = v.strip()
    return s.startswith(("0x", "0X")) and len(s) == 42 and bool(is_hex_address(s))


def normalize_address(v: Any) -> str:
    """Canonical ledger key for an address: lowercase 0x-hex.

    Raises ContractError(invalid_payload, bad_address) for anything else.
    """
    if not is_address(v):
        raise ContractError("invalid_payload", "bad_address", {"address": v})
    return "0x" + str(v).strip()[2:].lower()


def address_bytes(addr: str) -> bytes:
    """The 20 raw bytes of an address (Solidity abi.encodePacked(address))."""
    return bytes(to_canonical_address(normalize_address(addr)))


__all__ = ["NULL_ADDRESS", "address_bytes", "is_address", "normalize_address"]
