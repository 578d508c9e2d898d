"""Example: build a tree over some records, prove one, verify it elsewhere.

The proof is serialized to JSON and parsed back, as it would be when handed
to a third party. Verification only needs the record, the proof and the
root the verifier already trusts.

Usage:
    python examples/prove_and_verify.py [record ...]
"""

from __future__ import annotations

import sys

from flatmerkle import (
    InclusionProof,
    MerkleTree,
    render_proof,
    render_tree,
    verify,
)


def main() -> None:
    records = [arg.encode("utf-8") for arg in sys.argv[1:]] or [
        b"alpha",
        b"bravo",
        b"charlie",
    ]

    tree = MerkleTree.build(records)
    print("=" * 60)
    print(f"Tree over {tree.leaf_count} records ({tree.algorithm}, depth {tree.depth})")
    print("=" * 60)
    print(render_tree(tree))
    print()

    index = len(records) - 1
    wire = tree.prove(index).model_dump_json(indent=2)
    print(f"Proof for record {index}:")
    print(wire)
    print()

    proof = InclusionProof.model_validate_json(wire)
    print(render_proof(proof))
    print()

    ok = verify(records[index], proof, tree.root)
    print(f"Verified against root {tree.root}: {ok}")

    forged = verify(records[index] + b"!", proof, tree.root)
    print(f"Tampered record verifies: {forged}")


if __name__ == "__main__":
    main()
