# src/faircoin/runtime/contract_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from faircoin.crypto.merkle import as_node, keccak256, to_hex
from faircoin.ledger.address import NULL_ADDRESS, address_bytes, is_address, normalize_address
from faircoin.runtime.errors import ContractError

Json = Dict[str, Any]

_ZERO_ROOT = b"\x00" * 32


def derive_contract_address(founder: str, merkle_root: bytes) -> str:
    """Deterministic contract address for a (founder, root) deployment."""
    digest = keccak256(b"faircoin:" + address_bytes(founder) + bytes(merkle_root))
    return "0x" + digest[-20:].hex()


@dataclass(frozen=True)
class ContractConfig:
    merkle_root: bytes
    founder: str
    address: str

    @property
    def hex_root(self) -> str:
        return to_hex(self.merkle_root)


def make_contract_config(merkle_root: Any, founder: Any, address: Optional[str] = None) -> ContractConfig:
    """Validate construction parameters and freeze them.

    Fail-fast:
      - merkle_root must decode to 32 bytes and be nonzero
      - founder must be a valid nonzero address
      - address, when given, must be a valid nonzero address distinct from founder
    """
    root = as_node(merkle_root)
    if root is None or root == _ZERO_ROOT:
        raise ContractError("invalid_config", "invalid_merkle_root", {"merkle_root": repr(merkle_root)})

    if not is_address(founder) or normalize_address(founder) == NULL_ADDRESS:
        raise ContractError("invalid_config", "founder_required", {"founder": repr(founder)})
    founder_n = normalize_address(founder)

    if address is None:
        addr_n = derive_contract_address(founder_n, root)
    else:
        if not is_address(address) or normalize_address(address) == NULL_ADDRESS:
            raise ContractError("invalid_config", "bad_contract_address", {"address": repr(address)})
        addr_n = normalize_address(address)
    if addr_n == founder_n:
        raise ContractError("invalid_config", "bad_contract_address", {"address": addr_n})

    return ContractConfig(merkle_root=root, founder=founder_n, address=addr_n)


def read_contract_config_file(path: str, *, founder: Optional[str] = None) -> ContractConfig:
    """Build a config from an airdrop.json payload.

    The founder comes from the argument, the payload's "founder" key, or
    FAIRCOIN_FOUNDER, in that order.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("airdrop payload must be a JSON object")

    f = founder or raw.get("founder") or os.environ.get("FAIRCOIN_FOUNDER")
    return make_contract_config(raw.get("merkleRoot"), f, raw.get("contractAddress"))


__all__ = ["ContractConfig", "derive_contract_address", "make_contract_config", "read_contract_config_file"]
