"""Public proof artifact models for chiastamp package."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Position(str, Enum):
    """Side of the sibling relative to the node being built at one tree level.

    This is the sibling's side, not the leaf's.
    """
    LEFT = "left"
    RIGHT = "right"


class ProofStep(BaseModel):
    """One level of a Merkle inclusion path."""
    hash: str  # sibling digest, hex
    position: Position

    model_config = ConfigDict(frozen=True)


class ProofArtifact(BaseModel):
    """Proof file contents as issued by the stamping service.

    A partial proof has confirmed=False and no header_hash/coin_id.
    A confirmed proof carries both. Inconsistent artifacts (confirmed
    without chain fields) are accepted here and reported at verification.
    """
    confirmed: bool
    header_hash: Optional[str] = None  # ledger block header hash, hex
    coin_id: Optional[str] = None  # on-chain commitment coin, hex
    root_hash: str
    leaf_hash: str
    proof: List[ProofStep]  # root-ward order
    salt: Optional[str] = None  # absent on legacy unsalted proofs

    model_config = ConfigDict(frozen=True)

    @property
    def is_salted(self) -> bool:
        return bool(self.salt)

    @property
    def is_confirmed(self) -> bool:
        """True if the proof carries every field needed for on-chain checks."""
        return (
            self.confirmed is True
            and self.header_hash is not None
            and self.coin_id is not None
        )
