"""Pydantic models for merkle inclusion proofs.

An ``InclusionProof`` carries everything a third party needs to check that a
leaf belongs to a tree, without access to the tree itself. Field order is
part of the wire contract: metadata first, then the sibling path
(sibling digest, position) from leaf to root, then the leaf digest and the
claimed root.

Use ``export_json_schemas()`` to emit versioned JSON Schema definitions
suitable for publication.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from flatmerkle.hashing import Digest

SCHEMA_VERSION = "1.0"


class Side(str, Enum):
    """Position of a sibling relative to the node on the proof path."""

    LEFT = "left"
    RIGHT = "right"


class ProofStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    sibling: Digest = Field(..., description="Digest of the sibling node at this level")
    position: Side = Field(..., description="Whether the sibling sits left or right of the path")


class InclusionProof(BaseModel):
    """Inclusion proof for one leaf, ordered bottom-to-top."""

    model_config = ConfigDict(frozen=True)

    schema_version: str = SCHEMA_VERSION
    algorithm: str = Field(..., description="Name of the hash primitive, e.g. 'sha256'")
    leaf_index: int = Field(..., ge=0)
    tree_size: int = Field(..., ge=1, description="Leaf count of the tree that produced the proof")
    path: tuple[ProofStep, ...] = Field(
        ..., description="Sibling digests from the leaf level up to the root's children"
    )
    leaf_digest: Digest
    root_digest: Digest = Field(..., description="Root digest the proof was generated against")

    @property
    def depth(self) -> int:
        return len(self.path)


_SCHEMA_MODELS: dict[str, type[BaseModel]] = {
    "ProofStep": ProofStep,
    "InclusionProof": InclusionProof,
}


def export_json_schemas(output_dir: str | Path | None = None) -> dict[str, dict]:
    """Generate versioned JSON Schema definitions for the proof models.

    If *output_dir* is provided, each schema is also written to
    ``<output_dir>/<ModelName>.v<version>.schema.json``.

    Returns a dict mapping model name to its JSON Schema dict.
    """
    schemas: dict[str, dict] = {}
    for name, model_cls in _SCHEMA_MODELS.items():
        schema = model_cls.model_json_schema()
        schema["$id"] = f"urn:flatmerkle:schemas:{name}:v{SCHEMA_VERSION}"
        schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        schemas[name] = schema

    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for name, schema in schemas.items():
            path = out / f"{name}.v{SCHEMA_VERSION}.schema.json"
            path.write_text(json.dumps(schema, indent=2) + "\n")

    return schemas
