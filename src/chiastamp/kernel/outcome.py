"""Verification outcome models.

Outcomes are created fresh per verification run and never mutated.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from chiastamp.codes import FailureReason


class VerificationOutcome(BaseModel):
    """Result of a single verification step."""
    step: str
    passed: bool
    message: str
    failure_reason: Optional[FailureReason] = None
    timestamp: Optional[int] = None  # unix seconds of the anchoring coin
    block_index: Optional[int] = None  # confirmed block of the anchoring coin

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls, step: str, message: str, **fields) -> "VerificationOutcome":
        return cls(step=step, passed=True, message=message, **fields)

    @classmethod
    def failure(
        cls,
        step: str,
        message: str,
        reason: Optional[FailureReason] = None,
    ) -> "VerificationOutcome":
        return cls(step=step, passed=False, message=message, failure_reason=reason)


class VerificationResults(BaseModel):
    """The three outcome slots of one verification run.

    Every slot is populated, either by a real check or by a placeholder
    explaining which earlier step prevented it.
    """
    file_hash_match: VerificationOutcome
    local_proof: VerificationOutcome
    on_chain_anchor: VerificationOutcome

    model_config = ConfigDict(frozen=True)

    @property
    def passed(self) -> bool:
        return (
            self.file_hash_match.passed
            and self.local_proof.passed
            and self.on_chain_anchor.passed
        )

    def slots(self) -> list[tuple[str, VerificationOutcome]]:
        return [
            ("file_hash_match", self.file_hash_match),
            ("local_proof", self.local_proof),
            ("on_chain_anchor", self.on_chain_anchor),
        ]
