"""Array-backed merkle tree.

Tree structure
==============

The tree lives in a single level-order tuple of digests (see
``flatmerkle.layout``): slot 0 is the root, the children of slot ``i`` are
``2i+1`` and ``2i+2``, and the leaf digests fill the last level in input
order. Every intermediate digest is stored, so proofs are read straight out
of the array with no rehashing.

**Odd levels:** when a level has an odd number of real nodes, the last one
is paired with itself. The slots to the right of a level's last real node
are padding and hold a copy of that node, so the lone trailing node finds
its own digest in its sibling slot and proof generation stays uniform:
every non-root node has exactly one sibling.

**Immutability:** a tree is built once and never changes. It can be shared
between threads without locking. Rebuilding is the only way to change the
leaves.
"""

from __future__ import annotations

import logging
import operator
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import Any, Iterable, NamedTuple, Sequence

from flatmerkle import layout
from flatmerkle.config import settings
from flatmerkle.errors import (
    EmptyInputError,
    IndexOutOfRangeError,
    LeafDataUnavailableError,
    MalformedTreeError,
)
from flatmerkle.hashing import Digest, HashEngine, get_engine
from flatmerkle.schemas import InclusionProof, ProofStep, Side

logger = logging.getLogger(__name__)


class NodeMismatch(NamedTuple):
    """First slot whose stored digest disagrees with its recomputed value."""

    slot: int
    expected: Digest
    found: Digest


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def _executor(workers: int, task_count: int) -> Any:
    if workers > 1 and task_count >= settings.parallel_min_tasks:
        logger.debug("Building with %d worker threads (%d leaves)", workers, task_count)
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="flatmerkle-build")
    return nullcontext()


def _hash_leaves(
    engine: HashEngine, leaves: Sequence[bytes], pool: ThreadPoolExecutor | None
) -> list[Digest]:
    if pool is not None and len(leaves) >= settings.parallel_min_tasks:
        return list(pool.map(engine.hash_leaf, leaves))
    return [engine.hash_leaf(leaf) for leaf in leaves]


def _fold(
    engine: HashEngine, nodes: list[Digest], pool: ThreadPoolExecutor | None
) -> list[Digest]:
    """Hash one level into the next. A trailing odd node is paired with itself."""
    lefts = nodes[0::2]
    rights = nodes[1::2]
    if len(rights) < len(lefts):
        rights.append(lefts[-1])
    if pool is not None and len(lefts) >= settings.parallel_min_tasks:
        # pool.map returns only once every pair of this level is hashed
        return list(pool.map(engine.hash_internal, lefts, rights))
    return [engine.hash_internal(left, right) for left, right in zip(lefts, rights)]


def _place(slots: list[Digest], level: int, nodes: list[Digest]) -> None:
    offset = layout.level_offset(level)
    width = 1 << level
    slots[offset : offset + width] = nodes + [nodes[-1]] * (width - len(nodes))


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


class MerkleTree:
    """Immutable merkle tree over an ordered, non-empty list of leaves.

    Build one with ``MerkleTree.build`` (or the module-level ``build``).
    ``root`` is O(1); ``prove`` reads sibling digests straight from the
    level-order slot array.

    Proofs are self-contained: verify them with
    ``flatmerkle.verification.verify``, no tree instance needed.
    """

    __slots__ = ("_slots", "_leaf_count", "_depth", "_engine", "_data")

    def __init__(
        self,
        slots: tuple[Digest, ...],
        leaf_count: int,
        engine: HashEngine,
        data: tuple[bytes, ...] | None = None,
    ) -> None:
        self._slots = slots
        self._leaf_count = leaf_count
        self._depth = layout.depth_for(leaf_count)
        self._engine = engine
        self._data = data

    @classmethod
    def build(
        cls,
        leaves: Iterable[bytes],
        *,
        engine: HashEngine | None = None,
        workers: int | None = None,
        keep_data: bool | None = None,
    ) -> MerkleTree:
        """Hash *leaves* in order and fold them into a tree.

        Args:
            leaves: ordered leaf byte strings. Order is significant.
            engine: hash engine to use (default: the configured algorithm).
            workers: thread count for level-synchronized parallel hashing
                (default ``settings.build_workers``; 0 or 1 is sequential).
            keep_data: retain an immutable copy of every leaf's bytes
                (default ``settings.retain_leaf_data``).

        Raises:
            EmptyInputError: *leaves* is empty.
        """
        items = list(leaves)
        if not items:
            raise EmptyInputError("cannot build a merkle tree from zero leaves")

        engine = engine or get_engine()
        workers = settings.build_workers if workers is None else workers
        keep_data = settings.retain_leaf_data if keep_data is None else keep_data

        leaf_count = len(items)
        depth = layout.depth_for(leaf_count)
        slots: list[Digest] = [None] * layout.slot_count(depth)  # type: ignore[list-item]

        with _executor(workers, leaf_count) as pool:
            nodes = _hash_leaves(engine, items, pool)
            _place(slots, depth, nodes)
            for level in range(depth - 1, -1, -1):
                nodes = _fold(engine, nodes, pool)
                _place(slots, level, nodes)

        data = tuple(bytes(item) for item in items) if keep_data else None
        tree = cls(tuple(slots), leaf_count, engine, data)

        logger.debug(
            "Built merkle tree: leaves=%d depth=%d algorithm=%s root=%s",
            leaf_count,
            depth,
            engine.algorithm,
            tree.root.hex(),
        )
        return tree

    @classmethod
    def from_level_order(
        cls,
        slots: Sequence[bytes | str],
        leaf_count: int,
        *,
        engine: HashEngine | None = None,
        data: Sequence[bytes] | None = None,
    ) -> MerkleTree:
        """Rehydrate a tree from a level-order dump such as ``tree.slots``.

        Digests may be raw bytes or hex strings. The dump is audited before
        the tree is returned.

        Raises:
            EmptyInputError: *leaf_count* is zero.
            MalformedTreeError: the dump has the wrong shape or fails the audit.
        """
        leaf_count = operator.index(leaf_count)
        if leaf_count < 1:
            raise EmptyInputError(f"leaf_count must be >= 1, got {leaf_count}")
        engine = engine or get_engine()
        depth = layout.depth_for(leaf_count)

        expected_slots = layout.slot_count(depth)
        if len(slots) != expected_slots:
            raise MalformedTreeError(
                f"expected {expected_slots} slots for {leaf_count} leaves, got {len(slots)}"
            )
        try:
            digests = tuple(Digest.coerce(s) for s in slots)
        except ValueError as exc:
            raise MalformedTreeError(f"invalid digest in level-order dump: {exc}") from exc
        for index, digest in enumerate(digests):
            if len(digest) != engine.digest_size:
                raise MalformedTreeError(
                    f"slot {index} holds {len(digest)} bytes, "
                    f"{engine.algorithm} digests are {engine.digest_size}"
                )

        retained = None
        if data is not None:
            retained = tuple(bytes(item) for item in data)
            if len(retained) != leaf_count:
                raise MalformedTreeError(
                    f"got {len(retained)} leaf data entries for {leaf_count} leaves"
                )

        tree = cls(digests, leaf_count, engine, retained)
        mismatch = tree.audit()
        if mismatch is not None:
            raise MalformedTreeError(
                f"slot {mismatch.slot} holds {mismatch.found.hex()}, "
                f"expected {mismatch.expected.hex()}",
                mismatch,
            )
        logger.debug("Rehydrated merkle tree: leaves=%d root=%s", leaf_count, tree.root.hex())
        return tree

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def root(self) -> Digest:
        return self._slots[0]

    @property
    def leaf_count(self) -> int:
        return self._leaf_count

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def engine(self) -> HashEngine:
        return self._engine

    @property
    def algorithm(self) -> str:
        return self._engine.algorithm

    @property
    def slots(self) -> tuple[Digest, ...]:
        """The full level-order array, padding slots included."""
        return self._slots

    @property
    def leaves(self) -> tuple[Digest, ...]:
        offset = layout.level_offset(self._depth)
        return self._slots[offset : offset + self._leaf_count]

    @property
    def has_data(self) -> bool:
        return self._data is not None

    def leaf(self, leaf_index: int) -> Digest:
        index = self._check_leaf_index(leaf_index)
        return self._slots[layout.leaf_slot(index, self._depth)]

    def data(self, leaf_index: int) -> bytes:
        """Raw bytes of a leaf, if the tree was built with ``keep_data=True``."""
        if self._data is None:
            raise LeafDataUnavailableError("tree was built without retained leaf data")
        return self._data[self._check_leaf_index(leaf_index)]

    def node(self, slot: int) -> Digest:
        return self._slots[self._check_slot(slot)]

    def index_of(self, leaf: bytes) -> int:
        """Position of the first leaf whose digest matches ``hash_leaf(leaf)``."""
        target = self._engine.hash_leaf(leaf)
        for index, digest in enumerate(self.leaves):
            if digest == target:
                return index
        raise ValueError(f"leaf with digest {target.hex()} is not in the tree")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def parent_of(self, slot: int) -> Digest | None:
        """Digest of the parent of *slot*, or ``None`` for the root."""
        parent = layout.parent(self._check_slot(slot))
        return None if parent is None else self._slots[parent]

    def left_of(self, slot: int) -> Digest | None:
        """Digest of the left child of *slot*, or ``None`` for leaf slots."""
        slot = self._check_slot(slot)
        if layout.level_of(slot) == self._depth:
            return None
        return self._slots[layout.left_child(slot)]

    def right_of(self, slot: int) -> Digest | None:
        """Digest of the right child of *slot*, or ``None`` for leaf slots."""
        slot = self._check_slot(slot)
        if layout.level_of(slot) == self._depth:
            return None
        return self._slots[layout.right_child(slot)]

    def is_padding(self, slot: int) -> bool:
        slot = self._check_slot(slot)
        level = layout.level_of(slot)
        position = slot - layout.level_offset(level)
        return position >= layout.real_width(self._leaf_count, self._depth, level)

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def prove(self, leaf_index: int) -> InclusionProof:
        """Generate an inclusion proof for the leaf at *leaf_index*.

        The path runs bottom-to-top and always has ``depth`` steps.

        Raises:
            IndexOutOfRangeError: *leaf_index* is negative or ``>= leaf_count``.
        """
        index = self._check_leaf_index(leaf_index)
        slot = layout.leaf_slot(index, self._depth)
        leaf_digest = self._slots[slot]

        path: list[ProofStep] = []
        while slot > 0:
            side = Side.RIGHT if layout.is_left_child(slot) else Side.LEFT
            path.append(ProofStep(sibling=self._slots[layout.sibling(slot)], position=side))
            slot = layout.parent(slot)

        return InclusionProof(
            algorithm=self._engine.algorithm,
            leaf_index=index,
            tree_size=self._leaf_count,
            path=tuple(path),
            leaf_digest=leaf_digest,
            root_digest=self.root,
        )

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def audit(self) -> NodeMismatch | None:
        """Recompute the tree from the bottom up and report the first bad slot.

        Retained leaf data is re-hashed against the leaf slots, every real
        internal slot is checked against its children, and every padding
        slot must mirror the last real node of its level.
        """
        engine = self._engine
        slots = self._slots
        depth = self._depth

        if self._data is not None:
            for index, raw in enumerate(self._data):
                slot = layout.leaf_slot(index, depth)
                expected = engine.hash_leaf(raw)
                if slots[slot] != expected:
                    return NodeMismatch(slot, expected, slots[slot])

        for level in range(depth, -1, -1):
            offset = layout.level_offset(level)
            width = layout.real_width(self._leaf_count, depth, level)
            if level < depth:
                for slot in range(offset, offset + width):
                    expected = engine.hash_internal(
                        slots[layout.left_child(slot)], slots[layout.right_child(slot)]
                    )
                    if slots[slot] != expected:
                        return NodeMismatch(slot, expected, slots[slot])
            last = slots[offset + width - 1]
            for slot in range(offset + width, offset + (1 << level)):
                if slots[slot] != last:
                    return NodeMismatch(slot, last, slots[slot])
        return None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_leaf_index(self, leaf_index: int) -> int:
        index = operator.index(leaf_index)
        if index < 0 or index >= self._leaf_count:
            raise IndexOutOfRangeError(
                f"leaf index {index} out of range [0, {self._leaf_count})"
            )
        return index

    def _check_slot(self, slot: int) -> int:
        index = operator.index(slot)
        if index < 0 or index >= len(self._slots):
            raise IndexOutOfRangeError(f"slot {index} out of range [0, {len(self._slots)})")
        return index

    def __len__(self) -> int:
        return self._leaf_count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTree):
            return NotImplemented
        return (
            self._engine == other._engine
            and self._leaf_count == other._leaf_count
            and self._slots == other._slots
        )

    def __hash__(self) -> int:
        return hash((self._engine.algorithm, self._leaf_count, self._slots[0]))

    def __repr__(self) -> str:
        return (
            f"MerkleTree(leaves={self._leaf_count}, depth={self._depth}, "
            f"algorithm={self._engine.algorithm!r}, root={self.root.short()})"
        )


def build(
    leaves: Iterable[bytes],
    *,
    engine: HashEngine | None = None,
    workers: int | None = None,
    keep_data: bool | None = None,
) -> MerkleTree:
    """Shorthand for ``MerkleTree.build``."""
    return MerkleTree.build(leaves, engine=engine, workers=workers, keep_data=keep_data)
