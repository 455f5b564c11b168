"""
Sorted-pair Merkle tree used for private listing whitelists.

Leaves are the sha256 digest of the 20 address bytes. Each parent is the sha256 of its
two children concatenated in ascending byte order, so a proof is just the list of
sibling hashes from leaf to root and carries no left/right flags. A node without a
sibling is promoted to the next level unchanged.
"""

import hashlib
from typing import Iterable, Optional

from marketplace_ledger.utils.general_utils import standardize_address

ZERO_ROOT = "0x" + "00" * 32


def _to_bytes(value: str) -> bytes:
    return bytes.fromhex(value.removeprefix("0x"))


def _to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def hash_pair(a: bytes, b: bytes) -> bytes:
    if b < a:
        a, b = b, a
    return hashlib.sha256(a + b).digest()


def generate_leaf(address: str) -> bytes:
    return hashlib.sha256(_to_bytes(standardize_address(address))).digest()


def is_empty_root(root: Optional[str]) -> bool:
    return root is None or root in ("", "0x", ZERO_ROOT)


def verify(proof: Iterable[str], root: str, leaf: bytes) -> bool:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, _to_bytes(sibling))
    return _to_hex(computed) == root.lower()


class MerkleTree:
    def __init__(self, addresses: Iterable[str]):
        leaves = [generate_leaf(address) for address in addresses]
        if not leaves:
            raise ValueError("Merkle tree needs at least one leaf")
        self.layers: list[list[bytes]] = [leaves]
        while len(self.layers[-1]) > 1:
            layer = self.layers[-1]
            parents = []
            for i in range(0, len(layer), 2):
                if i + 1 < len(layer):
                    parents.append(hash_pair(layer[i], layer[i + 1]))
                else:
                    parents.append(layer[i])
            self.layers.append(parents)

    @property
    def root(self) -> str:
        return _to_hex(self.layers[-1][0])

    def get_proof(self, address: str) -> list[str]:
        leaf = generate_leaf(address)
        try:
            index = self.layers[0].index(leaf)
        except ValueError:
            return []

        proof = []
        for layer in self.layers[:-1]:
            sibling = index ^ 1
            if sibling < len(layer):
                proof.append(_to_hex(layer[sibling]))
            index //= 2
        return proof
