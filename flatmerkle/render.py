"""Text rendering of trees and proofs for debugging and inspection.

Presentation only: nothing here is part of the hashing or proof contract.
"""

from __future__ import annotations

from flatmerkle import layout
from flatmerkle.config import settings
from flatmerkle.schemas import InclusionProof
from flatmerkle.tree import MerkleTree

_INDENT = "    "


def render_tree(
    tree: MerkleTree,
    *,
    digest_chars: int | None = None,
    show_padding: bool = False,
) -> str:
    """Indented pre-order outline of *tree*, one digest per line.

    For the leaves a, b, c the outline reads::

        H(H(a, b), H(c, c))
            H(a, b)
                a  [leaf 0]
                b  [leaf 1]
            H(c, c)
                c  [leaf 2]

    where each line shows the first *digest_chars* hex characters of the
    slot. Padding subtrees are omitted unless *show_padding* is set.
    """
    chars = settings.render_digest_chars if digest_chars is None else digest_chars
    leaf_offset = layout.level_offset(tree.depth)
    lines: list[str] = []

    def walk(slot: int, level: int) -> None:
        padding = tree.is_padding(slot)
        if padding and not show_padding:
            return
        label = tree.node(slot).short(chars)
        if padding:
            label += "  (padding)"
        elif level == tree.depth:
            label += f"  [leaf {slot - leaf_offset}]"
        lines.append(_INDENT * level + label)
        if level < tree.depth:
            walk(layout.left_child(slot), level + 1)
            walk(layout.right_child(slot), level + 1)

    walk(0, 0)
    return "\n".join(lines)


def render_proof(proof: InclusionProof, *, digest_chars: int | None = None) -> str:
    chars = settings.render_digest_chars if digest_chars is None else digest_chars
    lines = [
        f"leaf {proof.leaf_index} of {proof.tree_size} ({proof.algorithm})",
        f"  leaf  {proof.leaf_digest.short(chars)}",
    ]
    for level, step in enumerate(proof.path):
        lines.append(f"  {level:>4}  {step.sibling.short(chars)}  {step.position.value}")
    lines.append(f"  root  {proof.root_digest.short(chars)}")
    return "\n".join(lines)
