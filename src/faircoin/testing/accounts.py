from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from faircoin.crypto.merkle import MerkleTree, keccak256
from faircoin.runtime.contract import FairCoin
from faircoin.runtime.contract_config import make_contract_config

Json = Dict[str, Any]


def deterministic_address(*, label: str) -> str:
    """Deterministically derive an address from a stable label.

    TEST ONLY.
    """
    return "0x" + keccak256(("faircoin-test-account:" + (label or "")).encode("utf-8"))[-20:].hex()


def make_addresses(n: int, *, prefix: str = "acct") -> List[str]:
    return [deterministic_address(label=f"{prefix}-{i}") for i in range(int(n))]


class ManualClock:
    """Injectable clock returning integer seconds; advanced by hand."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += int(seconds)
        return self.now


def deploy(
    allowlist: Sequence[str],
    *,
    founder: Optional[str] = None,
    clock: Optional[ManualClock] = None,
    state: Optional[Json] = None,
) -> Tuple[FairCoin, MerkleTree]:
    """Build the allowlist tree and deploy a contract against its root.

    TEST ONLY.
    """
    tree = MerkleTree.from_addresses(list(allowlist))
    cfg = make_contract_config(tree.root, founder or deterministic_address(label="founder"))
    return FairCoin(cfg, clock=clock or ManualClock(), state=state), tree
