"""Proof file I/O helpers (internal)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from chiastamp.contracts import ProofArtifact

PROOF_SUFFIX = ".proof.json"
PARSE_ERROR_MESSAGE = "Failed to parse proof file. Please ensure it's a valid JSON file."


class ProofParseError(ValueError):
    """Raised when a proof file cannot be read or does not match the proof schema."""


def parse_proof(data: Union[str, bytes, Dict[str, Any]]) -> ProofArtifact:
    """Validate a proof from a dict or a JSON document."""
    try:
        if isinstance(data, dict):
            return ProofArtifact.model_validate(data)
        return ProofArtifact.model_validate_json(data)
    except ValidationError as e:
        raise ProofParseError(PARSE_ERROR_MESSAGE) from e


def load_proof_file(path: Union[str, Path]) -> ProofArtifact:
    """Load a proof artifact from a JSON file path."""
    proof_path = Path(path)
    try:
        raw = proof_path.read_bytes()
    except OSError as e:
        raise ProofParseError(PARSE_ERROR_MESSAGE) from e
    return parse_proof(raw)


def proof_to_dict(artifact: ProofArtifact) -> Dict[str, Any]:
    """Serialize a proof the way the stamping service issues it."""
    return artifact.model_dump(mode="json", exclude_none=True)


def write_proof_file(artifact: ProofArtifact, path: Union[str, Path]) -> Path:
    """Write a proof artifact as indented JSON; returns the path written."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(proof_to_dict(artifact), indent=2) + "\n", encoding="utf-8")
    return out


def default_proof_path(file_path: Union[str, Path]) -> Path:
    """Proof file location for a content file: <name>.proof.json beside it."""
    p = Path(file_path)
    return p.with_name(p.name + PROOF_SUFFIX)

