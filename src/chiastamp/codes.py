"""Failure reason and step label constants for verification outcomes.

These constants prevent stringly-typed outcome fields and ensure
client code branches on the correct values.
"""

from enum import Enum


class FailureReason(str, Enum):
    """Why a verification step failed."""

    # Required artifact fields absent (resubmit or wait for confirmation)
    MISSING_DATA = "missing-data"

    # Proof does not correspond to the file or chain state presented
    INVALID_DATA = "invalid-data"

    # External index unreachable or returned an unusable response
    API_ERROR = "api-error"


class StepLabel(str, Enum):
    """Outcome labels, one per verification step or branch."""

    FILE_HASH = "File Hash Match"
    SALTED_FILE_HASH = "Salted File Hash Match"
    LOCAL_PROOF = "Local Proof"
    LOCAL_PROOF_SINGLE = "Local Proof (Single Leaf)"
    LOCAL_PROOF_MULTI = "Local Proof (Multi-Leaf)"
    ON_CHAIN = "On-Chain Verification"
