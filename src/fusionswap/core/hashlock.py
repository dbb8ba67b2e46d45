"""Hashlock commitments over one or more secrets.

A single-secret hashlock stores ``sha3_256(secret)`` directly. A multi-secret
hashlock stores only the Merkle root over the per-segment leaf digests, so
each segment's secret can be revealed independently with an inclusion proof.

Tree layout:
    - leaves are kept in segment order (no sorting, the index is meaningful)
    - interior node = sha3_256(0x01 || left || right)
    - an odd node at the end of a level is paired with itself
"""

import hashlib
from dataclasses import dataclass
from typing import Optional, Sequence

DIGEST_SIZE = 32
NODE_PREFIX = b"\x01"


def hash_secret(secret: bytes) -> bytes:
    """Digest used for hashlock leaves."""
    return hashlib.sha3_256(secret).digest()


def _hash_pair(left: bytes, right: bytes) -> bytes:
    return hashlib.sha3_256(NODE_PREFIX + left + right).digest()


def tree_depth(leaf_count: int) -> int:
    """Number of levels above the leaves."""
    depth = 0
    width = leaf_count
    while width > 1:
        width = (width + 1) // 2
        depth += 1
    return depth


def _next_level(level: list[bytes]) -> list[bytes]:
    parents = []
    for i in range(0, len(level), 2):
        left = level[i]
        right = level[i + 1] if i + 1 < len(level) else left
        parents.append(_hash_pair(left, right))
    return parents


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """Compute the root over leaf digests in index order."""
    if not leaves:
        raise ValueError("Cannot build a Merkle root over zero leaves")
    level = list(leaves)
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def merkle_proof(leaves: Sequence[bytes], index: int) -> list[bytes]:
    """Sibling digests from leaf ``index`` up to (not including) the root."""
    if not 0 <= index < len(leaves):
        raise IndexError(f"Leaf index {index} out of range for {len(leaves)} leaves")

    proof: list[bytes] = []
    level = list(leaves)
    position = index
    while len(level) > 1:
        sibling = position ^ 1
        proof.append(level[sibling] if sibling < len(level) else level[position])
        level = _next_level(level)
        position //= 2
    return proof


def compute_root_from_proof(leaf: bytes, index: int, proof: Sequence[bytes]) -> bytes:
    """Fold a leaf with its proof, using the bits of ``index`` for ordering."""
    node = leaf
    position = index
    for sibling in proof:
        if position % 2 == 0:
            node = _hash_pair(node, sibling)
        else:
            node = _hash_pair(sibling, node)
        position //= 2
    return node


@dataclass(frozen=True)
class Hashlock:
    """Commitment over the secrets of an order.

    ``leaf_count == 1`` means a single digest (no partial fills) and
    ``commitment`` is ``sha3_256(secret)``. Otherwise ``commitment`` is the
    Merkle root over ``leaf_count`` segment leaves.
    """

    commitment: bytes
    leaf_count: int = 1

    def __post_init__(self) -> None:
        if len(self.commitment) != DIGEST_SIZE:
            raise ValueError(f"Hashlock commitment must be {DIGEST_SIZE} bytes")
        if self.leaf_count < 1:
            raise ValueError("Hashlock needs at least one leaf")

    @classmethod
    def single(cls, digest: bytes) -> "Hashlock":
        return cls(commitment=digest, leaf_count=1)

    @classmethod
    def merkle(cls, root: bytes, leaf_count: int) -> "Hashlock":
        if leaf_count < 2:
            raise ValueError("A Merkle hashlock needs at least two leaves")
        return cls(commitment=root, leaf_count=leaf_count)

    @classmethod
    def from_hashes(cls, hashes: Sequence[bytes]) -> "Hashlock":
        """One hash gives a single hashlock, more give a Merkle root over them."""
        if not hashes:
            raise ValueError("Hash set is empty")
        for digest in hashes:
            if len(digest) != DIGEST_SIZE:
                raise ValueError(f"Every hash must be {DIGEST_SIZE} bytes")
        if len(hashes) == 1:
            return cls.single(hashes[0])
        return cls.merkle(build_merkle_root(hashes), len(hashes))

    @property
    def allows_partial_fills(self) -> bool:
        return self.leaf_count > 1

    def verify(
        self,
        secret: bytes,
        segment_index: Optional[int] = None,
        proof: Optional[Sequence[bytes]] = None,
    ) -> bool:
        """Check a revealed secret against the commitment. Never raises."""
        leaf = hash_secret(secret)

        if not self.allows_partial_fills:
            if segment_index not in (None, 0):
                return False
            return leaf == self.commitment

        if segment_index is None or not 0 <= segment_index < self.leaf_count:
            return False
        if proof is None or len(proof) != tree_depth(self.leaf_count):
            return False
        if any(len(sibling) != DIGEST_SIZE for sibling in proof):
            return False
        return compute_root_from_proof(leaf, segment_index, proof) == self.commitment
