from __future__ import annotations

import pytest

from faircoin.crypto.merkle import MerkleTree, hash_pair, keccak256, leaf_hash, to_hex, verify
from faircoin.testing.accounts import deterministic_address, make_addresses

HARDHAT_0 = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
HARDHAT_1 = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"


def test_keccak256_matches_known_vector() -> None:
    # Keccak-256 (not SHA3-256) of the empty string.
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


def test_leaf_hash_is_keccak_of_raw_address_bytes() -> None:
    assert leaf_hash(HARDHAT_0) == keccak256(bytes.fromhex(HARDHAT_0[2:]))
    # Case of the hex digits does not change the leaf.
    assert leaf_hash(HARDHAT_0.upper().replace("0X", "0x")) == leaf_hash(HARDHAT_0)


def test_hash_pair_is_commutative() -> None:
    a = leaf_hash(HARDHAT_0)
    b = leaf_hash(HARDHAT_1)
    assert hash_pair(a, b) == hash_pair(b, a)
    assert hash_pair(a, b) == keccak256(min(a, b) + max(a, b))


def test_single_leaf_root_is_the_leaf_and_proof_is_empty() -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0])
    assert tree.root == leaf_hash(HARDHAT_0)
    assert tree.proof(HARDHAT_0) == []
    assert verify(tree.root, [], HARDHAT_0)


def test_two_leaf_root() -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0, HARDHAT_1])
    assert tree.root == hash_pair(leaf_hash(HARDHAT_0), leaf_hash(HARDHAT_1))
    assert tree.proof(HARDHAT_0) == [leaf_hash(HARDHAT_1)]


def test_odd_leaf_is_promoted_unchanged() -> None:
    a, b, c = make_addresses(3, prefix="odd")
    tree = MerkleTree.from_addresses([a, b, c])
    expected = hash_pair(hash_pair(leaf_hash(a), leaf_hash(b)), leaf_hash(c))
    assert tree.root == expected
    # The promoted leaf needs only one sibling.
    assert tree.proof(c) == [hash_pair(leaf_hash(a), leaf_hash(b))]


@pytest.mark.parametrize("n", list(range(1, 10)))
def test_every_member_verifies(n: int) -> None:
    addrs = make_addresses(n, prefix=f"tree{n}")
    tree = MerkleTree.from_addresses(addrs)
    for a in addrs:
        assert verify(tree.root, tree.proof(a), a)
        assert verify(tree.hex_root, tree.hex_proof(a), a)


@pytest.mark.parametrize("n", [2, 5, 8])
def test_non_member_does_not_verify(n: int) -> None:
    addrs = make_addresses(n, prefix=f"members{n}")
    tree = MerkleTree.from_addresses(addrs)
    outsider = deterministic_address(label="outsider")
    # Borrowing a member's proof does not help an outsider.
    assert not verify(tree.root, tree.proof(addrs[0]), outsider)
    assert not verify(tree.root, [], outsider)


def test_wrong_root_or_flipped_bit_fails() -> None:
    addrs = make_addresses(6, prefix="flip")
    tree = MerkleTree.from_addresses(addrs)
    proof = tree.proof(addrs[3])
    assert proof

    flipped = bytearray(proof[0])
    flipped[0] ^= 0x01
    assert not verify(tree.root, [bytes(flipped)] + proof[1:], addrs[3])

    other = MerkleTree.from_addresses(make_addresses(6, prefix="other"))
    assert not verify(other.root, proof, addrs[3])


def test_leaf_pairing_matters_for_the_root() -> None:
    a0, a1, a2, a3 = make_addresses(4, prefix="order")
    base = MerkleTree.from_addresses([a0, a1, a2, a3]).root
    # Regrouping the leaves changes which pairs get hashed together.
    assert MerkleTree.from_addresses([a0, a2, a1, a3]).root != base


def test_reversing_four_leaves_keeps_the_root() -> None:
    addrs = make_addresses(4, prefix="order")
    # Sorted pairs: (a3, a2) and (a1, a0) hash like (a2, a3) and (a0, a1).
    assert MerkleTree.from_addresses(list(reversed(addrs))).root == MerkleTree.from_addresses(addrs).root


@pytest.mark.parametrize(
    "proof",
    [
        None,
        "0x" + "00" * 32,
        b"\x00" * 32,
        ["0x1234"],
        ["zz" * 32],
        [123],
        [b"\x00" * 31],
        {"a": 1},
    ],
)
def test_malformed_proofs_never_raise(proof) -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0, HARDHAT_1])
    assert verify(tree.root, proof, HARDHAT_0) is False


def test_malformed_root_or_address_never_raise() -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0, HARDHAT_1])
    proof = tree.proof(HARDHAT_0)
    assert verify("not-a-root", proof, HARDHAT_0) is False
    assert verify(b"\x00" * 31, proof, HARDHAT_0) is False
    assert verify(tree.root, proof, "0x1234") is False
    assert verify(tree.root, proof, None) is False


def test_tuple_proof_and_hex_root_accepted() -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0, HARDHAT_1])
    assert verify(to_hex(tree.root).upper().replace("0X", "0x"), tuple(tree.hex_proof(HARDHAT_1)), HARDHAT_1)


def test_builder_rejects_empty_and_duplicates() -> None:
    with pytest.raises(ValueError):
        MerkleTree.from_addresses([])
    with pytest.raises(ValueError):
        MerkleTree.from_addresses([HARDHAT_0, HARDHAT_0.upper().replace("0X", "0x")])


def test_proof_for_unknown_address_raises_key_error() -> None:
    tree = MerkleTree.from_addresses([HARDHAT_0])
    with pytest.raises(KeyError):
        tree.proof(HARDHAT_1)
