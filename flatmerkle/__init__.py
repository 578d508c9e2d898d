"""flatmerkle: array-backed merkle trees with domain-separated hashing."""

from flatmerkle.config import MerkleSettings, settings
from flatmerkle.errors import (
    EmptyInputError,
    IndexOutOfRangeError,
    LeafDataUnavailableError,
    MalformedTreeError,
    MerkleError,
    UnsupportedAlgorithmError,
)
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
from flatmerkle.render import render_proof, render_tree
from flatmerkle.schemas import (
    SCHEMA_VERSION,
    InclusionProof,
    ProofStep,
    Side,
    export_json_schemas,
)
from flatmerkle.tree import MerkleTree, NodeMismatch, build
from flatmerkle.verification import verify, verify_leaf_digest, verify_tree

__all__ = [
    # Configuration
    "settings",
    "MerkleSettings",
    # Hashing
    "Digest",
    "HashEngine",
    "LEAF_TAG",
    "INTERNAL_TAG",
    "get_engine",
    "hash_leaf",
    "hash_internal",
    "supported_algorithms",
    # Tree
    "MerkleTree",
    "NodeMismatch",
    "build",
    # Proofs
    "InclusionProof",
    "ProofStep",
    "Side",
    "SCHEMA_VERSION",
    "export_json_schemas",
    "verify",
    "verify_leaf_digest",
    "verify_tree",
    # Rendering
    "render_tree",
    "render_proof",
    # Errors
    "MerkleError",
    "EmptyInputError",
    "IndexOutOfRangeError",
    "UnsupportedAlgorithmError",
    "LeafDataUnavailableError",
    "MalformedTreeError",
]

__version__ = "0.1.0"
