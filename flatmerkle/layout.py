"""Index arithmetic for the level-order slot array.

A tree of depth ``d`` is stored as a perfect binary tree of
``2**(d+1) - 1`` slots, root first, one level after another::

    alpha
        bravo
            charlie
            delta
        echo
            foxtrot
            golf

    [alpha, bravo, echo, charlie, delta, foxtrot, golf]

The children of slot ``i`` are ``2i+1`` and ``2i+2`` and the leaves occupy
the final ``2**d`` slots. When the leaf count is not a power of two, each
level has fewer real nodes than slots; see ``real_width``.
"""

from __future__ import annotations


def depth_for(leaf_count: int) -> int:
    """``ceil(log2(leaf_count))``: 0 for one leaf, 2 for three or four."""
    if leaf_count < 1:
        raise ValueError(f"leaf_count must be >= 1, got {leaf_count}")
    return (leaf_count - 1).bit_length()


def slot_count(depth: int) -> int:
    return (1 << (depth + 1)) - 1


def level_offset(level: int) -> int:
    """Slot index of the first node on *level* (root is level 0)."""
    return (1 << level) - 1


def level_of(index: int) -> int:
    return (index + 1).bit_length() - 1


def leaf_slot(leaf_index: int, depth: int) -> int:
    return level_offset(depth) + leaf_index


def real_width(leaf_count: int, depth: int, level: int) -> int:
    """Number of non-padding nodes on *level*: ``ceil(n / 2**(depth - level))``."""
    return ((leaf_count - 1) >> (depth - level)) + 1


def parent(index: int) -> int | None:
    if index == 0:
        return None
    return (index - 1) // 2


def left_child(index: int) -> int:
    return 2 * index + 1


def right_child(index: int) -> int:
    return 2 * index + 2


def is_left_child(index: int) -> bool:
    return index % 2 == 1


def sibling(index: int) -> int | None:
    if index == 0:
        return None
    return index + 1 if is_left_child(index) else index - 1
