"""Public API for chiastamp.

High-level coroutines that return complete, structured results.
Callers should use these functions instead of importing from _internal.
"""

import logging
import os
import secrets
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from chiastamp.contracts import ProofArtifact
from chiastamp.kernel.anchor import ChainAnchorVerifier, Clock
from chiastamp.kernel.chain import ChainIndex
from chiastamp.kernel.hash_utils import (
    InvalidHexError,
    RandomSource,
    digest,
    generate_salt,
    salted_digest,
)
from chiastamp.kernel.outcome import VerificationResults
from chiastamp.kernel.pipeline import (
    compute_file_digest,
    digest_error_results,
    proofs_differ,
    run_pipeline,
)
from chiastamp._internal.backend import BackendClient
from chiastamp._internal.coinset import CoinsetClient
from chiastamp._internal.config import Settings
from chiastamp._internal.io.content import hash_file
from chiastamp._internal.io.proof_file import load_proof_file, parse_proof

logger = logging.getLogger(__name__)

UPDATED_PROOF_MESSAGE = "Updated proof downloaded successfully!"
NO_UPDATE_MESSAGE = "No updates available for this proof. Your current proof is up to date."

ContentInput = Union[str, os.PathLike, Path, bytes]
ProofInput = Union[str, os.PathLike, Path, Dict[str, Any], ProofArtifact]


class RefreshResult(BaseModel):
    """Outcome of checking the stamping service for a newer proof."""
    changed: bool
    artifact: ProofArtifact  # the candidate if changed, else the current proof
    message: str


def _load_artifact(proof: ProofInput) -> ProofArtifact:
    if isinstance(proof, ProofArtifact):
        return proof
    if isinstance(proof, dict):
        return parse_proof(proof)
    return load_proof_file(Path(proof))


def _content_digest(content: ContentInput, artifact: ProofArtifact) -> str:
    if isinstance(content, bytes):
        return compute_file_digest(content, artifact)
    return hash_file(Path(content), artifact.salt)


def hash_content(content: ContentInput, salt: Optional[str] = None) -> str:
    """Digest a file (path) or raw bytes, salted when salt is given.

    Raises:
        InvalidHexError: If salt is not valid hex
    """
    if isinstance(content, bytes):
        return salted_digest(content, salt) if salt else digest(content)
    return hash_file(Path(content), salt)


async def verify_file(
    content: ContentInput,
    proof: ProofInput,
    *,
    settings: Optional[Settings] = None,
    chain_index: Optional[ChainIndex] = None,
    clock: Clock = time.time,
) -> VerificationResults:
    """Verify that content is anchored by proof.

    Args:
        content: Path to the original file, or its bytes
        proof: Path to a proof file, a proof dict, or a ProofArtifact
        settings: Service settings (default: from environment)
        chain_index: Coin/block index; a CoinsetClient is created if omitted
        clock: Current unix time source for the age of the commitment

    Returns:
        VerificationResults with all three slots populated

    Raises:
        ProofParseError: If the proof cannot be loaded
        OSError: If the content file cannot be read
    """
    artifact = _load_artifact(proof)

    try:
        file_digest = _content_digest(content, artifact)
    except InvalidHexError as e:
        logger.warning("Cannot digest content with proof salt: %s", e)
        return digest_error_results(artifact, e)

    if chain_index is not None:
        verifier = ChainAnchorVerifier(chain_index, clock)
        return await run_pipeline(file_digest, artifact, verifier.verify)

    settings = settings or Settings.from_env()
    async with CoinsetClient(settings.coinset_base, timeout=settings.http_timeout) as client:
        verifier = ChainAnchorVerifier(client, clock)
        return await run_pipeline(file_digest, artifact, verifier.verify)


async def stamp_file(
    content: ContentInput,
    *,
    settings: Optional[Settings] = None,
    backend: Optional[BackendClient] = None,
    random_source: RandomSource = secrets.token_bytes,
) -> ProofArtifact:
    """Salt and digest content, submit it for stamping, return the proof.

    The returned proof carries the locally generated salt, which the
    service never sees.

    Raises:
        BackendError: If the stamping service request fails
    """
    salt = generate_salt(random_source=random_source)
    leaf_hash = hash_content(content, salt)

    if backend is None:
        settings = settings or Settings.from_env()
        async with BackendClient(settings.backend_url, timeout=settings.http_timeout) as client:
            issued = await client.stamp(leaf_hash)
    else:
        issued = await backend.stamp(leaf_hash)

    logger.info("Stamped leaf %s (confirmed=%s)", leaf_hash, issued.confirmed)
    return issued.model_copy(update={"salt": salt})


async def check_for_updated_proof(
    proof: ProofInput,
    *,
    settings: Optional[Settings] = None,
    backend: Optional[BackendClient] = None,
) -> RefreshResult:
    """Fetch the latest proof for this proof's leaf and compare.

    The candidate keeps the local salt when the service omits it.

    Raises:
        ProofParseError: If the proof cannot be loaded
        BackendError: If the stamping service request fails
    """
    current = _load_artifact(proof)

    if backend is None:
        settings = settings or Settings.from_env()
        async with BackendClient(settings.backend_url, timeout=settings.http_timeout) as client:
            candidate = await client.fetch_proof(current.leaf_hash)
    else:
        candidate = await backend.fetch_proof(current.leaf_hash)

    if candidate.salt is None and current.salt is not None:
        candidate = candidate.model_copy(update={"salt": current.salt})

    if proofs_differ(current, candidate):
        logger.info("Proof for leaf %s has changed (confirmed=%s)", current.leaf_hash, candidate.confirmed)
        return RefreshResult(changed=True, artifact=candidate, message=UPDATED_PROOF_MESSAGE)
    return RefreshResult(changed=False, artifact=current, message=NO_UPDATE_MESSAGE)
