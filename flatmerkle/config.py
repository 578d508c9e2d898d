"""Configuration for flatmerkle.

All settings are driven by environment variables with sensible defaults.
They are read once at import; tests and embedding applications may patch
attributes on the module-level ``settings`` object.
"""

from __future__ import annotations

import os


def _get_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return int(val)


def _get_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


class MerkleSettings:
    # --- Hashing ---
    # Primitive used when no engine is passed explicitly.
    # One of: sha256, sha3-256, blake2b-256, blake3.
    hash_algorithm: str = os.getenv("FLATMERKLE_HASH_ALGORITHM", "sha256")

    # --- Construction ---
    # Worker threads used by MerkleTree.build. 0 or 1 builds sequentially.
    build_workers: int = _get_int("FLATMERKLE_BUILD_WORKERS", 0)
    # Levels with fewer hashing tasks (leaves or pairs) than this are always
    # hashed on the calling thread.
    parallel_min_tasks: int = _get_int("FLATMERKLE_PARALLEL_MIN_TASKS", 1024)
    # Keep an immutable copy of every leaf's bytes alongside its digest.
    retain_leaf_data: bool = _get_bool("FLATMERKLE_RETAIN_LEAF_DATA", False)

    # --- Rendering ---
    # Hex characters shown per digest by render_tree / render_proof.
    render_digest_chars: int = _get_int("FLATMERKLE_RENDER_DIGEST_CHARS", 12)


settings = MerkleSettings()
