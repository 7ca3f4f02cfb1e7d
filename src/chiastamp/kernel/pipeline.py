"""Verification pipeline: file hash -> local proof -> on-chain anchor.

The pipeline is a forward-only state machine. A failed stage short-circuits
the rest, and every skipped stage is filled with a placeholder outcome, so a
run always yields exactly three slots.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Union

from chiastamp.codes import FailureReason, StepLabel
from chiastamp.contracts import ProofArtifact
from chiastamp.kernel.hash_utils import HashFn, digest, salted_digest, sha256
from chiastamp.kernel.merkle import verify_merkle_path
from chiastamp.kernel.outcome import VerificationOutcome, VerificationResults

logger = logging.getLogger(__name__)

AnchorCheck = Callable[[ProofArtifact], Awaitable[VerificationOutcome]]

LOCAL_PROOF_SKIPPED_FILE_HASH = "cannot verify local proof: file hash does not match"
ON_CHAIN_SKIPPED_FILE_HASH = "cannot verify on-chain: file hash does not match"
ON_CHAIN_SKIPPED_LOCAL_PROOF = "cannot verify on-chain: local proof is invalid"


class VerificationStage(str, Enum):
    START = "start"
    FILE_HASH_CHECK = "file_hash_check"
    LOCAL_PROOF_CHECK = "local_proof_check"
    CHAIN_ANCHOR_CHECK = "chain_anchor_check"
    DONE = "done"


def compute_file_digest(
    data: Union[str, bytes],
    artifact: ProofArtifact,
    hash_fn: HashFn = sha256,
) -> str:
    """Digest content the way the artifact's leaf was produced.

    Salted proofs hash content ++ salt; legacy proofs hash content alone.

    Raises:
        InvalidHexError: If the artifact's salt is not valid hex
    """
    if artifact.salt:
        return salted_digest(data, artifact.salt, hash_fn)
    return digest(data, hash_fn)


def check_file_hash(file_digest: str, artifact: ProofArtifact) -> VerificationOutcome:
    """Compare a computed content digest to the artifact's leaf (case-insensitive)."""
    salted = artifact.is_salted
    step = StepLabel.SALTED_FILE_HASH.value if salted else StepLabel.FILE_HASH.value
    kind = "Salted file hash" if salted else "File hash"

    if file_digest.lower() == artifact.leaf_hash.lower():
        return VerificationOutcome.success(step, f"{kind} matches the proof leaf hash")
    return VerificationOutcome.failure(
        step,
        f"{kind} ({file_digest}) does not match proof leaf hash ({artifact.leaf_hash})",
        FailureReason.INVALID_DATA,
    )


def _placeholder(step: StepLabel, message: str) -> VerificationOutcome:
    return VerificationOutcome.failure(step.value, message)


def file_hash_failed(file_hash_outcome: VerificationOutcome) -> VerificationResults:
    """Results for a run stopped at the file hash stage."""
    return VerificationResults(
        file_hash_match=file_hash_outcome,
        local_proof=_placeholder(StepLabel.LOCAL_PROOF, LOCAL_PROOF_SKIPPED_FILE_HASH),
        on_chain_anchor=_placeholder(StepLabel.ON_CHAIN, ON_CHAIN_SKIPPED_FILE_HASH),
    )


def digest_error_results(artifact: ProofArtifact, error: Exception) -> VerificationResults:
    """Results for content that could not be digested (e.g. malformed salt)."""
    step = StepLabel.SALTED_FILE_HASH if artifact.is_salted else StepLabel.FILE_HASH
    return file_hash_failed(VerificationOutcome.failure(
        step.value,
        f"Error calculating file hash: {error}",
        FailureReason.INVALID_DATA,
    ))


async def run_pipeline(
    file_digest: str,
    artifact: ProofArtifact,
    anchor_check: AnchorCheck,
    hash_fn: HashFn = sha256,
) -> VerificationResults:
    """Run all three checks in order, short-circuiting on failure.

    Args:
        file_digest: Digest of the candidate content (see compute_file_digest)
        artifact: Proof artifact to verify against
        anchor_check: Coroutine function performing the on-chain check
        hash_fn: Hash primitive for Merkle replay

    Returns:
        VerificationResults with all three slots populated
    """
    slots: Dict[str, VerificationOutcome] = {}
    stage = VerificationStage.START

    while stage != VerificationStage.DONE:
        logger.debug("Verification stage: %s", stage.value)

        if stage == VerificationStage.START:
            stage = VerificationStage.FILE_HASH_CHECK

        elif stage == VerificationStage.FILE_HASH_CHECK:
            outcome = check_file_hash(file_digest, artifact)
            if not outcome.passed:
                return file_hash_failed(outcome)
            slots["file_hash_match"] = outcome
            stage = VerificationStage.LOCAL_PROOF_CHECK

        elif stage == VerificationStage.LOCAL_PROOF_CHECK:
            outcome = verify_merkle_path(
                artifact.leaf_hash, artifact.proof, artifact.root_hash, hash_fn
            )
            slots["local_proof"] = outcome
            if outcome.passed:
                stage = VerificationStage.CHAIN_ANCHOR_CHECK
            else:
                slots["on_chain_anchor"] = _placeholder(
                    StepLabel.ON_CHAIN, ON_CHAIN_SKIPPED_LOCAL_PROOF
                )
                stage = VerificationStage.DONE

        elif stage == VerificationStage.CHAIN_ANCHOR_CHECK:
            slots["on_chain_anchor"] = await anchor_check(artifact)
            stage = VerificationStage.DONE

    results = VerificationResults(**slots)
    logger.info(
        "Verification of leaf %s: file_hash=%s local_proof=%s on_chain=%s",
        artifact.leaf_hash,
        results.file_hash_match.passed,
        results.local_proof.passed,
        results.on_chain_anchor.passed,
    )
    return results


def can_refresh(results: Optional[VerificationResults]) -> bool:
    """Whether an updated proof may exist for these results.

    True only for a locally valid proof whose on-chain check failed for
    lack of chain fields, i.e. a partial proof that may since have been
    confirmed.
    """
    if results is None:
        return False
    return (
        results.file_hash_match.passed
        and results.local_proof.passed
        and not results.on_chain_anchor.passed
        and results.on_chain_anchor.failure_reason == FailureReason.MISSING_DATA
    )


def proofs_differ(current: ProofArtifact, candidate: ProofArtifact) -> bool:
    """Whether candidate differs from current in any anchoring field.

    The Merkle path is compared element-wise; order, hash and position all
    count. The salt is not compared.
    """
    return (
        current.confirmed != candidate.confirmed
        or current.header_hash != candidate.header_hash
        or current.coin_id != candidate.coin_id
        or current.root_hash != candidate.root_hash
        or current.leaf_hash != candidate.leaf_hash
        or list(current.proof) != list(candidate.proof)
    )


class VerificationSession:
    """Holds the authoritative results for a caller that may re-run verification.

    Each run takes a generation number. When a run finishes after a newer
    one has started, its results are discarded rather than stored.
    """

    def __init__(self, anchor_check: AnchorCheck, hash_fn: HashFn = sha256) -> None:
        self._anchor_check = anchor_check
        self._hash_fn = hash_fn
        self._generation = 0
        self.latest: Optional[VerificationResults] = None

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        """Forget current results and invalidate any in-flight run."""
        self._generation += 1
        self.latest = None

    async def run(
        self,
        file_digest: str,
        artifact: ProofArtifact,
    ) -> Optional[VerificationResults]:
        """Run the pipeline; return its results, or None if superseded."""
        self._generation += 1
        generation = self._generation

        results = await run_pipeline(file_digest, artifact, self._anchor_check, self._hash_fn)

        if generation != self._generation:
            logger.warning(
                "Discarding stale verification run %d (current run is %d)",
                generation, self._generation,
            )
            return None
        self.latest = results
        return results
