"""Domain-separated hashing for merkle trees.

Hashing rules (for third-party verifiers)
=========================================

**Hash algorithm:** selectable by name, SHA-256 (FIPS 180-4) by default.
Also available: SHA3-256, BLAKE2b with a 32-byte digest, and BLAKE3.

**Domain-separated hashing** (prevents second-preimage attacks where
an internal node could be reinterpreted as a leaf):

- Leaf nodes:     H(0x00 || data)
- Internal nodes: H(0x01 || left || right)

The left child's digest always precedes the right child's. Swapping them
produces a different parent, so mirrored subtrees never share a root.

**Odd levels:** a level with an odd number of nodes pairs its last node
with itself, ``H(0x01 || x || x)``. The node is never promoted unchanged.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Any, Callable

import blake3
from pydantic_core import core_schema

from flatmerkle.config import settings
from flatmerkle.errors import UnsupportedAlgorithmError

LEAF_TAG = b"\x00"
INTERNAL_TAG = b"\x01"

_ALGORITHMS: dict[str, Callable[[], Any]] = {
    "sha256": hashlib.sha256,
    "sha3-256": hashlib.sha3_256,
    "blake2b-256": lambda: hashlib.blake2b(digest_size=32),
    "blake3": blake3.blake3,
}


class Digest(bytes):
    """Fixed-size output of a hash engine.

    Compares byte-for-byte with other digests and with plain ``bytes``.
    ``str(digest)`` is the lowercase hex rendering.
    """

    __slots__ = ()

    @classmethod
    def from_hex(cls, value: str) -> Digest:
        return cls(bytes.fromhex(value))

    def short(self, chars: int = 12) -> str:
        return self.hex()[:chars]

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Digest('{self.hex()}')"

    # ------------------------------------------------------------------
    # pydantic integration
    # ------------------------------------------------------------------

    @classmethod
    def coerce(cls, value: Any) -> Digest:
        if isinstance(value, cls):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(value)
        if isinstance(value, str):
            return cls.from_hex(value)
        raise ValueError(f"expected a digest as bytes or hex string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda d: d.hex(), when_used="json"
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: Any, handler: Any) -> dict[str, Any]:
        return {
            "type": "string",
            "format": "hex",
            "pattern": "^([0-9a-fA-F]{2})*$",
            "description": "Hex-encoded digest",
        }


def supported_algorithms() -> list[str]:
    return sorted(_ALGORITHMS)


class HashEngine:
    """Binds a hash primitive to the leaf/internal domain-separation rules.

    Engines hold no hashing state between calls, so one engine can be shared
    by any number of threads.
    """

    LEAF_TAG = LEAF_TAG
    INTERNAL_TAG = INTERNAL_TAG

    def __init__(self, algorithm: str | None = None) -> None:
        name = (algorithm or settings.hash_algorithm).strip().lower()
        try:
            self._factory = _ALGORITHMS[name]
        except KeyError:
            raise UnsupportedAlgorithmError(
                f"unsupported hash algorithm {name!r}; "
                f"expected one of {', '.join(supported_algorithms())}"
            ) from None
        self._algorithm = name
        self._digest_size = self._factory().digest_size

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def digest_size(self) -> int:
        return self._digest_size

    def digest(self, data: bytes) -> Digest:
        """Untagged ``H(data)``."""
        h = self._factory()
        h.update(data)
        return Digest(h.digest())

    def hash_leaf(self, data: bytes) -> Digest:
        """Compute ``H(0x00 || data)``. An empty byte string is a valid leaf."""
        h = self._factory()
        h.update(LEAF_TAG)
        h.update(data)
        return Digest(h.digest())

    def hash_internal(self, left: bytes, right: bytes) -> Digest:
        """Compute ``H(0x01 || left || right)``."""
        h = self._factory()
        h.update(INTERNAL_TAG)
        h.update(left)
        h.update(right)
        return Digest(h.digest())

    def hash_duplicate(self, node: bytes) -> Digest:
        """Parent of a lone trailing node: the node paired with itself."""
        return self.hash_internal(node, node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashEngine):
            return NotImplemented
        return self._algorithm == other._algorithm

    def __hash__(self) -> int:
        return hash(self._algorithm)

    def __repr__(self) -> str:
        return f"HashEngine({self._algorithm!r})"


@lru_cache(maxsize=None)
def _engine_for(algorithm: str) -> HashEngine:
    return HashEngine(algorithm)


def get_engine(algorithm: str | None = None) -> HashEngine:
    """Return a shared engine for *algorithm* (default: the configured one)."""
    return _engine_for((algorithm or settings.hash_algorithm).strip().lower())


def hash_leaf(data: bytes) -> Digest:
    return get_engine().hash_leaf(data)


def hash_internal(left: bytes, right: bytes) -> Digest:
    return get_engine().hash_internal(left, right)
