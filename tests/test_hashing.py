"""Tests for domain-separated hashing and the Digest value type.

Covers:
- Leaf and internal-node hashing against hand-computed primitives
- Domain separation and child-order sensitivity
- Algorithm selection (hashlib primitives and BLAKE3)
- Digest equality, hex rendering and pydantic coercion
"""

from __future__ import annotations

import hashlib

import blake3
import pytest

from flatmerkle.config import settings
from flatmerkle.errors import UnsupportedAlgorithmError
from flatmerkle.hashing import (
    INTERNAL_TAG,
    LEAF_TAG,
    Digest,
    HashEngine,
    get_engine,
    hash_internal,
    hash_leaf,
    supported_algorithms,
)

# ---------------------------------------------------------------------------
# HashEngine
# ---------------------------------------------------------------------------


class TestHashEngine:
    def test_tags_are_fixed(self):
        assert LEAF_TAG == b"\x00"
        assert INTERNAL_TAG == b"\x01"
        assert HashEngine.LEAF_TAG == LEAF_TAG
        assert HashEngine.INTERNAL_TAG == INTERNAL_TAG

    def test_hash_leaf_prefixes_leaf_tag(self):
        engine = HashEngine("sha256")
        assert engine.hash_leaf(b"hello") == hashlib.sha256(b"\x00hello").digest()

    def test_hash_internal_prefixes_internal_tag(self):
        engine = HashEngine("sha256")
        left, right = b"L" * 32, b"R" * 32
        assert engine.hash_internal(left, right) == hashlib.sha256(b"\x01" + left + right).digest()

    def test_digest_is_untagged(self):
        engine = HashEngine("sha256")
        assert engine.digest(b"hello") == hashlib.sha256(b"hello").digest()

    def test_empty_leaf_is_valid(self):
        engine = HashEngine("sha256")
        assert engine.hash_leaf(b"") == hashlib.sha256(b"\x00").digest()

    def test_domain_separation(self):
        engine = HashEngine("sha256")
        data = b"\xab" * 64
        # the same 64 bytes hashed as a leaf and as two children must differ
        assert engine.hash_leaf(data) != engine.hash_internal(data[:32], data[32:])

    def test_leaf_digest_differs_from_raw_digest(self):
        engine = HashEngine("sha256")
        assert engine.hash_leaf(b"x") != engine.digest(b"x")

    def test_child_order_matters(self):
        engine = HashEngine("sha256")
        a, b = engine.hash_leaf(b"a"), engine.hash_leaf(b"b")
        assert engine.hash_internal(a, b) != engine.hash_internal(b, a)

    def test_hash_duplicate_pairs_node_with_itself(self):
        engine = HashEngine("sha256")
        c = engine.hash_leaf(b"c")
        assert engine.hash_duplicate(c) == engine.hash_internal(c, c)

    def test_returns_digest_instances(self):
        engine = HashEngine("sha256")
        assert isinstance(engine.hash_leaf(b"a"), Digest)
        assert isinstance(engine.hash_internal(b"a", b"b"), Digest)

    def test_accepts_bytearray_and_memoryview(self):
        engine = HashEngine("sha256")
        expected = engine.hash_leaf(b"abc")
        assert engine.hash_leaf(bytearray(b"abc")) == expected
        assert engine.hash_leaf(memoryview(b"abc")) == expected


# ---------------------------------------------------------------------------
# Algorithm selection
# ---------------------------------------------------------------------------


class TestAlgorithms:
    def test_supported_algorithms(self):
        assert supported_algorithms() == ["blake2b-256", "blake3", "sha256", "sha3-256"]

    @pytest.mark.parametrize("name", ["sha256", "sha3-256", "blake2b-256", "blake3"])
    def test_every_algorithm_produces_32_byte_digests(self, name):
        engine = HashEngine(name)
        assert engine.digest_size == 32
        assert len(engine.hash_leaf(b"data")) == 32

    def test_blake3_uses_blake3_package(self):
        engine = HashEngine("blake3")
        assert engine.hash_leaf(b"hello") == blake3.blake3(b"\x00hello").digest()

    def test_blake2b_is_truncated_to_32_bytes(self):
        engine = HashEngine("blake2b-256")
        assert engine.hash_leaf(b"hello") == hashlib.blake2b(b"\x00hello", digest_size=32).digest()

    def test_name_is_normalized(self):
        assert HashEngine("  SHA256 ").algorithm == "sha256"

    def test_unknown_algorithm_raises(self):
        with pytest.raises(UnsupportedAlgorithmError, match="md5"):
            HashEngine("md5")

    def test_unsupported_algorithm_is_value_error(self):
        with pytest.raises(ValueError):
            HashEngine("crc32")

    def test_algorithms_disagree(self):
        assert HashEngine("sha256").hash_leaf(b"x") != HashEngine("blake3").hash_leaf(b"x")

    def test_default_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "hash_algorithm", "blake3")
        assert HashEngine().algorithm == "blake3"
        assert get_engine().algorithm == "blake3"

    def test_get_engine_is_cached(self):
        assert get_engine("sha256") is get_engine("SHA256")

    def test_engines_compare_by_algorithm(self):
        assert HashEngine("sha256") == HashEngine("sha256")
        assert HashEngine("sha256") != HashEngine("blake3")
        assert hash(HashEngine("sha256")) == hash(HashEngine("sha256"))

    def test_module_helpers_use_default_engine(self, monkeypatch):
        monkeypatch.setattr(settings, "hash_algorithm", "sha256")
        assert hash_leaf(b"a") == HashEngine("sha256").hash_leaf(b"a")
        assert hash_internal(b"a", b"b") == HashEngine("sha256").hash_internal(b"a", b"b")


# ---------------------------------------------------------------------------
# Digest
# ---------------------------------------------------------------------------


class TestDigest:
    def test_bytewise_equality(self):
        raw = hashlib.sha256(b"x").digest()
        assert Digest(raw) == raw
        assert Digest(raw) == Digest(raw)
        assert Digest(raw) != Digest(raw[:-1] + b"\x00")

    def test_hashable_like_bytes(self):
        raw = hashlib.sha256(b"x").digest()
        assert {Digest(raw): 1}[raw] == 1

    def test_hex_rendering(self):
        d = Digest(b"\x01\xab")
        assert str(d) == "01ab"
        assert d.hex() == "01ab"
        assert repr(d) == "Digest('01ab')"

    def test_from_hex_round_trip(self):
        d = HashEngine("sha256").hash_leaf(b"hello")
        assert Digest.from_hex(str(d)) == d

    def test_short(self):
        d = Digest(bytes(range(32)))
        assert d.short() == "000102030405"
        assert d.short(4) == "0001"

    def test_coerce(self):
        d = Digest(b"\xff\x00")
        assert Digest.coerce(d) is d
        assert Digest.coerce(b"\xff\x00") == d
        assert Digest.coerce(bytearray(b"\xff\x00")) == d
        assert Digest.coerce("ff00") == d

    def test_coerce_rejects_other_types(self):
        with pytest.raises(ValueError):
            Digest.coerce(12)

    def test_coerce_rejects_bad_hex(self):
        with pytest.raises(ValueError):
            Digest.coerce("zz")
