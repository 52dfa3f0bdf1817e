#!/usr/bin/env python3
"""
Build the allowlist Merkle tree and write public/airdrop.json.

The root printed here is the value the contract must be deployed with; the
per-address proofs are what the eligibility API serves and the claim UI sends.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
ACCOUNTS_PATH = REPO_ROOT / "data" / "sample-accounts.json"
OUT_PATH = REPO_ROOT / "public" / "airdrop.json"


def main() -> None:
    from faircoin.airdrop.builder import build_airdrop, load_address_list, write_airdrop

    ap = argparse.ArgumentParser()
    ap.add_argument("--accounts", default=str(ACCOUNTS_PATH), help="JSON or YAML address list")
    ap.add_argument("--out", default=str(OUT_PATH), help="Output path for airdrop.json")
    args = ap.parse_args()

    try:
        addresses = load_address_list(Path(args.accounts).resolve())
        payload = build_airdrop(addresses)
        out = write_airdrop(payload, Path(args.out).resolve())
    except (OSError, ValueError) as e:
        raise SystemExit(f"❌ Error building Merkle tree: {e}") from e

    print(f"✅ wrote merkle root {payload['merkleRoot']} with {len(addresses)} leaves to {out}", file=sys.stdout)


if __name__ == "__main__":
    main()
