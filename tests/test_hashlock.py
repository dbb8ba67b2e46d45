"""Tests for hashlock commitments and Merkle proofs."""

import hashlib

import pytest

from fusionswap.core.hashlock import (
    Hashlock,
    build_merkle_root,
    compute_root_from_proof,
    hash_secret,
    merkle_proof,
    tree_depth,
)
from helpers import make_hashes, make_secrets


class TestSingleHashlock:
    """Single-secret hashlocks."""

    def test_hash_secret_is_sha3_256(self):
        assert hash_secret(b"abc") == hashlib.sha3_256(b"abc").digest()

    def test_verify_correct_secret(self):
        secret = b"\x42" * 32
        hashlock = Hashlock.from_hashes([hash_secret(secret)])

        assert not hashlock.allows_partial_fills
        assert hashlock.verify(secret)
        assert hashlock.verify(secret, segment_index=0)

    def test_verify_wrong_secret(self):
        hashlock = Hashlock.single(hash_secret(b"right"))

        assert not hashlock.verify(b"wrong")

    def test_verify_rejects_nonzero_segment(self):
        secret = b"s"
        hashlock = Hashlock.single(hash_secret(secret))

        assert not hashlock.verify(secret, segment_index=1)

    def test_rejects_bad_digest_length(self):
        with pytest.raises(ValueError):
            Hashlock.single(b"\x00" * 31)


class TestMerkleHashlock:
    """Multi-secret hashlocks with inclusion proofs."""

    @pytest.mark.parametrize("count", [2, 3, 5, 11])
    def test_every_leaf_verifies(self, count):
        secrets = make_secrets(count)
        hashes = make_hashes(secrets)
        hashlock = Hashlock.from_hashes(hashes)

        assert hashlock.leaf_count == count
        assert hashlock.allows_partial_fills
        for index, secret in enumerate(secrets):
            proof = merkle_proof(hashes, index)
            assert len(proof) == tree_depth(count)
            assert hashlock.verify(secret, index, proof)

    def test_secret_at_wrong_index_fails(self):
        secrets = make_secrets(4)
        hashes = make_hashes(secrets)
        hashlock = Hashlock.from_hashes(hashes)

        proof = merkle_proof(hashes, 1)
        assert not hashlock.verify(secrets[1], 2, proof)
        assert not hashlock.verify(secrets[2], 1, proof)

    def test_missing_or_short_proof_fails(self):
        secrets = make_secrets(4)
        hashes = make_hashes(secrets)
        hashlock = Hashlock.from_hashes(hashes)

        assert not hashlock.verify(secrets[0], 0, None)
        assert not hashlock.verify(secrets[0], 0, merkle_proof(hashes, 0)[:1])
        assert not hashlock.verify(secrets[0], None, merkle_proof(hashes, 0))

    def test_out_of_range_index_fails(self):
        secrets = make_secrets(3)
        hashes = make_hashes(secrets)
        hashlock = Hashlock.from_hashes(hashes)

        assert not hashlock.verify(secrets[0], 3, merkle_proof(hashes, 0))
        assert not hashlock.verify(secrets[0], -1, merkle_proof(hashes, 0))

    def test_malformed_proof_entries_do_not_raise(self):
        secrets = make_secrets(2)
        hashlock = Hashlock.from_hashes(make_hashes(secrets))

        assert not hashlock.verify(secrets[0], 0, [b"short"])

    def test_leaf_order_matters(self):
        hashes = make_hashes(make_secrets(3))

        assert build_merkle_root(hashes) != build_merkle_root(list(reversed(hashes)))

    def test_odd_level_pairs_with_itself(self):
        hashes = make_hashes(make_secrets(3))
        proof = merkle_proof(hashes, 2)

        # Leaf 2 has no right sibling at the bottom level
        assert proof[0] == hashes[2]
        assert compute_root_from_proof(hashes[2], 2, proof) == build_merkle_root(hashes)


class TestFromHashes:
    def test_empty_hashes_rejected(self):
        with pytest.raises(ValueError):
            Hashlock.from_hashes([])

    def test_wrong_length_hash_rejected(self):
        with pytest.raises(ValueError):
            Hashlock.from_hashes([b"\x01" * 32, b"\x02" * 16])

    def test_merkle_needs_two_leaves(self):
        with pytest.raises(ValueError):
            Hashlock.merkle(b"\x00" * 32, 1)

    def test_proof_index_out_of_range(self):
        with pytest.raises(IndexError):
            merkle_proof(make_hashes(make_secrets(2)), 2)
