# src/faircoin/airdrop/builder.py
from __future__ import annotations

"""Offline allowlist builder.

Turns an address list into the airdrop payload consumed by the eligibility
store and the claim UI:

  {
    "token": {"name": "Fair Coin", "symbol": "FAIR", "decimals": 18},
    "claimAmount": "100",
    "merkleRoot": "0x...",
    "claims": [{"address": "0x...", "proof": ["0x...", ...]}, ...]
  }

Input files are JSON or YAML; each entry is either {"address": "0x..."} or a
bare address string.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from faircoin.crypto.merkle import MerkleTree
from faircoin.ledger.address import is_address
from faircoin.ledger.constants import CLAIM_AMOUNT_FAIR, TOKEN_DECIMALS, TOKEN_NAME, TOKEN_SYMBOL
from faircoin.runtime.runtime_logging import log_event

Json = Dict[str, Any]

_log = logging.getLogger("faircoin.airdrop")


def _entry_address(entry: Any, idx: int) -> str:
    if isinstance(entry, str):
        addr = entry
    elif isinstance(entry, dict):
        addr = entry.get("address")
    else:
        raise ValueError(f"Invalid entry at index {idx}: must be an object or string")

    if not addr or not isinstance(addr, str):
        raise ValueError(f"Invalid entry at index {idx}: missing or invalid address")
    if not is_address(addr):
        raise ValueError(f"Invalid entry at index {idx}: Invalid Ethereum address format: {addr}")
    return addr.strip()


def load_address_list(path: str | Path) -> List[str]:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Sample accounts file not found: {p}")

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)

    if not isinstance(raw, list):
        raise ValueError("Sample accounts must be an array")
    if not raw:
        raise ValueError("Sample accounts array is empty")

    return [_entry_address(e, i) for i, e in enumerate(raw)]


def build_airdrop(addresses: Sequence[str]) -> Json:
    if not addresses:
        raise ValueError("Sample accounts array is empty")

    checked = [_entry_address(a, i) for i, a in enumerate(addresses)]
    tree = MerkleTree.from_addresses(checked)

    return {
        "token": {"name": TOKEN_NAME, "symbol": TOKEN_SYMBOL, "decimals": TOKEN_DECIMALS},
        "claimAmount": str(CLAIM_AMOUNT_FAIR),
        "merkleRoot": tree.hex_root,
        "claims": [{"address": a, "proof": tree.hex_proof(a)} for a in checked],
    }


def write_airdrop(payload: Json, out_path: str | Path) -> Path:
    """Write the payload, keeping the previous file as <name>.bak."""
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.exists():
        shutil.copyfile(p, p.with_name(p.name + ".bak"))
    p.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    log_event(
        _log,
        "airdrop_written",
        path=str(p),
        merkle_root=payload.get("merkleRoot"),
        leaves=len(payload.get("claims") or []),
    )
    return p


__all__ = ["build_airdrop", "load_address_list", "write_airdrop"]
