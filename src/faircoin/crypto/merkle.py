# src/faircoin/crypto/merkle.py
from __future__ import annotations

"""Allowlist Merkle tree: leaf hashing, sorted-pair folding and proof checks.

Conventions (must match the offline builder bit for bit):
  - leaf      = keccak256(20 raw address bytes)          (abi.encodePacked(address))
  - node      = keccak256(min(a, b) ++ max(a, b))         (sorted pairs, byte order)
  - leaves    are NOT sorted; they stay in input order
  - odd node  an unpaired last node is promoted to the next level unchanged
  - one leaf  root == leaf, proof == []

verify() never raises: anything malformed simply does not verify.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from eth_utils import keccak

from faircoin.ledger.address import address_bytes, is_address, normalize_address

HASH_LEN = 32


def keccak256(data: bytes) -> bytes:
    return bytes(keccak(primitive=bytes(data)))


def leaf_hash(address: str) -> bytes:
    return keccak256(address_bytes(address))


def hash_pair(a: bytes, b: bytes) -> bytes:
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


def as_node(v: Any) -> Optional[bytes]:
    """Decode a 32-byte node from bytes or 0x-hex; None when malformed."""
    if isinstance(v, (bytes, bytearray)):
        b = bytes(v)
        return b if len(b) == HASH_LEN else None
    if isinstance(v, str):
        s = v.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        if len(s) != 2 * HASH_LEN:
            return None
        try:
            return bytes.fromhex(s)
        except ValueError:
            return None
    return None


def to_hex(node: bytes) -> str:
    return "0x" + bytes(node).hex()


def process_proof(proof: Sequence[Any], leaf: bytes) -> Optional[bytes]:
    cur = leaf
    for sib in proof:
        node = as_node(sib)
        if node is None:
            return None
        cur = hash_pair(cur, node)
    return cur


def verify(root: Any, proof: Any, address: Any) -> bool:
    root_b = as_node(root)
    if root_b is None or not is_address(address):
        return False
    if isinstance(proof, (str, bytes, bytearray)) or not isinstance(proof, (list, tuple)):
        return False
    computed = process_proof(proof, leaf_hash(address))
    return computed is not None and computed == root_b


@dataclass
class MerkleTree:
    """Offline allowlist tree built from addresses in input order."""

    addresses: List[str]
    layers: List[List[bytes]] = field(default_factory=list)
    _index: Dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def from_addresses(cls, addresses: Sequence[str]) -> "MerkleTree":
        if not addresses:
            raise ValueError("cannot build a Merkle tree with no leaves")

        norm = [normalize_address(a) for a in addresses]
        index: Dict[str, int] = {}
        for i, a in enumerate(norm):
            if a in index:
                raise ValueError(f"duplicate address at index {i}: {a}")
            index[a] = i

        layers: List[List[bytes]] = [[leaf_hash(a) for a in norm]]
        while len(layers[-1]) > 1:
            cur = layers[-1]
            nxt: List[bytes] = []
            for i in range(0, len(cur), 2):
                if i + 1 < len(cur):
                    nxt.append(hash_pair(cur[i], cur[i + 1]))
                else:
                    nxt.append(cur[i])
            layers.append(nxt)

        return cls(addresses=norm, layers=layers, _index=index)

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def hex_root(self) -> str:
        return to_hex(self.root)

    def proof(self, address: str) -> List[bytes]:
        a = normalize_address(address)
        if a not in self._index:
            raise KeyError(a)

        idx = self._index[a]
        out: List[bytes] = []
        for layer in self.layers[:-1]:
            sib = idx ^ 1
            if sib < len(layer):
                out.append(layer[sib])
            idx //= 2
        return out

    def hex_proof(self, address: str) -> List[str]:
        return [to_hex(n) for n in self.proof(address)]


__all__ = [
    "HASH_LEN",
    "MerkleTree",
    "as_node",
    "hash_pair",
    "keccak256",
    "leaf_hash",
    "process_proof",
    "to_hex",
    "verify",
]
