"""chiastamp: verify blockchain timestamp proofs for files."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("chiastamp")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from chiastamp.api import (
    RefreshResult,
    check_for_updated_proof,
    hash_content,
    stamp_file,
    verify_file,
)
from chiastamp.codes import FailureReason, StepLabel
from chiastamp.contracts import Position, ProofArtifact, ProofStep
from chiastamp.kernel.outcome import VerificationOutcome, VerificationResults

__all__ = [
    "__version__",
    "verify_file",
    "stamp_file",
    "check_for_updated_proof",
    "hash_content",
    "RefreshResult",
    "FailureReason",
    "StepLabel",
    "Position",
    "ProofStep",
    "ProofArtifact",
    "VerificationOutcome",
    "VerificationResults",
]
