"""Free-standing verification of inclusion proofs and whole datasets.

Verification is total: every function here returns a bool and never raises,
whatever the proof contains. A malformed proof is indistinguishable from a
wrong one to the caller; the reason for a rejection is only logged at DEBUG.

The one exception is configuration: when no engine is passed and
``FLATMERKLE_HASH_ALGORITHM`` names an unknown primitive, resolving the
default engine raises ``UnsupportedAlgorithmError`` before any input is read.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Iterable

from flatmerkle import layout
from flatmerkle.errors import EmptyInputError
from flatmerkle.hashing import HashEngine, get_engine
from flatmerkle.schemas import InclusionProof, Side
from flatmerkle.tree import MerkleTree

logger = logging.getLogger(__name__)

_BYTES_LIKE = (bytes, bytearray, memoryview)


def _reject(reason: str, *args: Any) -> bool:
    logger.debug("Inclusion proof rejected: " + reason, *args)
    return False


def _is_digest(value: Any, size: int) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == size


def verify(
    leaf: bytes,
    proof: InclusionProof,
    claimed_root: bytes,
    *,
    engine: HashEngine | None = None,
) -> bool:
    """Check that *leaf* is included in the tree whose root is *claimed_root*.

    Recomputes ``hash_leaf(leaf)`` and folds it with each sibling in
    ``proof.path``, bottom to top, then compares the result with
    *claimed_root*. No tree instance is needed.

    Returns True only if the proof reconstructs *claimed_root* exactly.
    Raises ``UnsupportedAlgorithmError`` only when *engine* is omitted and the
    configured default algorithm is unknown.
    """
    engine = engine or get_engine()
    if not isinstance(leaf, _BYTES_LIKE):
        return _reject("leaf is %s, not bytes", type(leaf).__name__)
    return verify_leaf_digest(engine.hash_leaf(leaf), proof, claimed_root, engine=engine)


def verify_leaf_digest(
    leaf_digest: bytes,
    proof: InclusionProof,
    claimed_root: bytes,
    *,
    engine: HashEngine | None = None,
) -> bool:
    """Same as ``verify`` for callers that hold the leaf digest, not the leaf."""
    engine = engine or get_engine()
    size = engine.digest_size

    if not isinstance(proof, InclusionProof):
        return _reject("proof is %s", type(proof).__name__)
    algorithm = getattr(proof, "algorithm", None)
    if algorithm != engine.algorithm:
        return _reject("proof uses %r, verifier uses %r", algorithm, engine.algorithm)
    if not _is_digest(claimed_root, size) or not _is_digest(leaf_digest, size):
        return _reject("claimed root or leaf digest is not a %d-byte digest", size)
    proof_leaf = getattr(proof, "leaf_digest", None)
    proof_root = getattr(proof, "root_digest", None)
    if not _is_digest(proof_leaf, size) or not _is_digest(proof_root, size):
        return _reject("proof digests are not %d bytes", size)

    path = getattr(proof, "path", None)
    if not isinstance(path, (tuple, list)):
        return _reject("path is %s", type(path).__name__)

    tree_size = getattr(proof, "tree_size", None)
    index = getattr(proof, "leaf_index", None)
    if not isinstance(tree_size, int) or not isinstance(index, int) or tree_size < 1:
        return _reject("invalid tree size %r", tree_size)
    if not 0 <= index < tree_size:
        return _reject("leaf index %d outside tree of %d leaves", index, tree_size)
    if len(path) != layout.depth_for(tree_size):
        return _reject(
            "path has %d steps, a tree of %d leaves needs %d",
            len(path),
            tree_size,
            layout.depth_for(tree_size),
        )
    if not hmac.compare_digest(leaf_digest, proof_leaf):
        return _reject("leaf digest does not match the proof")
    if not hmac.compare_digest(claimed_root, proof_root):
        return _reject("proof was issued for a different root")

    current = bytes(leaf_digest)
    for level, step in enumerate(path):
        sibling = getattr(step, "sibling", None)
        if not _is_digest(sibling, size):
            return _reject("sibling at level %d is not a %d-byte digest", level, size)
        expected_side = Side.RIGHT if index % 2 == 0 else Side.LEFT
        if getattr(step, "position", None) != expected_side:
            return _reject("sibling at level %d is on the wrong side", level)
        if expected_side == Side.RIGHT:
            current = engine.hash_internal(current, sibling)
        else:
            current = engine.hash_internal(sibling, current)
        index //= 2

    if not hmac.compare_digest(current, claimed_root):
        return _reject("recomputed root does not match")
    return True


def verify_tree(
    leaves: Iterable[bytes],
    claimed_root: bytes,
    *,
    engine: HashEngine | None = None,
) -> bool:
    """Rebuild the tree over *leaves* and compare its root with *claimed_root*.

    This is the integrity check for a whole dataset. An empty leaf set never
    verifies.
    """
    engine = engine or get_engine()
    if not _is_digest(claimed_root, engine.digest_size):
        return False
    try:
        tree = MerkleTree.build(leaves, engine=engine, keep_data=False)
    except EmptyInputError:
        logger.debug("Dataset verification rejected: no leaves")
        return False
    except TypeError as exc:
        logger.debug("Dataset verification rejected: %s", exc)
        return False
    return hmac.compare_digest(tree.root, claimed_root)
