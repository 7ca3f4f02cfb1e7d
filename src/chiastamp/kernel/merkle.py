"""Merkle inclusion proof replay.

Recomputes a tree root from a leaf digest and its sibling path, and
compares it to the root the proof claims. Tree construction happens in
the stamping service; this module only verifies.
"""

from typing import Sequence

from chiastamp.codes import FailureReason, StepLabel
from chiastamp.contracts import Position, ProofStep
from chiastamp.kernel.hash_utils import (
    HashFn,
    InvalidHexError,
    bytes_to_hex,
    hash_pair,
    hex_to_bytes,
    sha256,
)
from chiastamp.kernel.outcome import VerificationOutcome


def compute_root(
    leaf_hex: str,
    steps: Sequence[ProofStep],
    hash_fn: HashFn = sha256,
) -> str:
    """Fold the sibling path into a root digest.

    Steps are applied in order, first element closest to the leaf. A LEFT
    sibling is hashed before the running node, a RIGHT sibling after it.

    Raises:
        InvalidHexError: If the leaf or any sibling is not valid hex
    """
    computed = hex_to_bytes(leaf_hex)
    for step in steps:
        sibling = hex_to_bytes(step.hash)
        if step.position == Position.LEFT:
            computed = hash_pair(sibling, computed, hash_fn)
        else:
            computed = hash_pair(computed, sibling, hash_fn)
    return bytes_to_hex(computed)


def verify_merkle_path(
    leaf_hex: str,
    steps: Sequence[ProofStep],
    root_hex: str,
    hash_fn: HashFn = sha256,
) -> VerificationOutcome:
    """Verify that leaf_hex is included under root_hex via steps.

    An empty path means a single-leaf tree, where the root is the leaf
    itself. Hex comparisons are case-insensitive. Malformed hex fails
    with invalid-data instead of raising.
    """
    if len(steps) == 0:
        try:
            hex_to_bytes(leaf_hex)
            hex_to_bytes(root_hex)
        except InvalidHexError as e:
            return VerificationOutcome.failure(
                StepLabel.LOCAL_PROOF_SINGLE.value,
                f"Error verifying single leaf proof: {e}",
                FailureReason.INVALID_DATA,
            )
        matches = leaf_hex.lower() == root_hex.lower()
        if matches:
            return VerificationOutcome.success(
                StepLabel.LOCAL_PROOF_SINGLE.value,
                "Single leaf tree: root hash matches leaf hash",
            )
        return VerificationOutcome.failure(
            StepLabel.LOCAL_PROOF_SINGLE.value,
            f"Single leaf tree: root hash ({root_hex}) does not match leaf hash ({leaf_hex})",
            FailureReason.INVALID_DATA,
        )

    try:
        computed_hex = compute_root(leaf_hex, steps, hash_fn)
    except InvalidHexError as e:
        return VerificationOutcome.failure(
            StepLabel.LOCAL_PROOF_MULTI.value,
            f"Error verifying multi-leaf proof: {e}",
            FailureReason.INVALID_DATA,
        )

    if computed_hex == root_hex.lower():
        return VerificationOutcome.success(
            StepLabel.LOCAL_PROOF_MULTI.value,
            f"Multi-leaf tree: computed root ({computed_hex}) matches proof root ({root_hex})",
        )
    return VerificationOutcome.failure(
        StepLabel.LOCAL_PROOF_MULTI.value,
        f"Multi-leaf tree: computed root ({computed_hex}) does not match proof root ({root_hex})",
        FailureReason.INVALID_DATA,
    )
