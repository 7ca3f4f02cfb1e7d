"""Generate JSON schemas from Pydantic models and save to schemas/ directory."""

import json
from pathlib import Path

from chiastamp.contracts import ProofArtifact
from chiastamp.kernel.outcome import VerificationResults


def generate_schemas():
    """Generate JSON schemas for the proof file and the verification report."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    # Generate proof artifact schema
    proof_schema = ProofArtifact.model_json_schema()
    proof_schema_path = schemas_dir / "proof_artifact.schema.json"
    with open(proof_schema_path, 'w', encoding='utf-8') as f:
        json.dump(proof_schema, f, indent=2, ensure_ascii=False)
    print(f"Generated: {proof_schema_path}")

    # Generate verification report schema
    results_schema = VerificationResults.model_json_schema()
    results_schema_path = schemas_dir / "verification_results.schema.json"
    with open(results_schema_path, 'w', encoding='utf-8') as f:
        json.dump(results_schema, f, indent=2, ensure_ascii=False)
    print(f"Generated: {results_schema_path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
