"""Exception hierarchy for flatmerkle.

Construction and proof-generation failures are caller contract violations:
they are raised immediately and never retried. Proof verification never
raises; it returns ``False`` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flatmerkle.tree import NodeMismatch


class MerkleError(Exception):
    """Base class for every error raised by flatmerkle."""


class EmptyInputError(MerkleError, ValueError):
    """Raised when a tree is built from zero leaves."""


class IndexOutOfRangeError(MerkleError, IndexError):
    """Raised when a leaf index or slot index is outside the tree."""


class UnsupportedAlgorithmError(MerkleError, ValueError):
    """Raised when a hash engine is requested for an unknown primitive."""


class LeafDataUnavailableError(MerkleError, LookupError):
    """Raised when raw leaf data is requested from a digest-only tree."""


class MalformedTreeError(MerkleError, ValueError):
    """Raised when a level-order dump cannot be rehydrated into a tree."""

    def __init__(self, message: str, mismatch: NodeMismatch | None = None) -> None:
        super().__init__(message)
        self.mismatch = mismatch
