"""On-chain anchoring check.

Confirms that a proof's commitment is recorded on the ledger:

1. Coin index: find a coin hinted by root_hash whose parent_coin_info is
   the proof's coin_id.
2. Block index: fetch the block at that coin's confirmed height and check
   its header hash against the proof's header_hash.

Every failure is returned as an outcome; nothing raised by the index
escapes verify().
"""

import logging
from typing import Callable, List, Optional

from chiastamp.codes import FailureReason, StepLabel
from chiastamp.contracts import ProofArtifact
from chiastamp.kernel.chain import ChainIndex, ChainIndexError, CoinRecord, strip_hex_prefix
from chiastamp.kernel.outcome import VerificationOutcome
from chiastamp.kernel.time_format import format_time_delta

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_STEP = StepLabel.ON_CHAIN.value


def missing_chain_fields(artifact: ProofArtifact) -> List[str]:
    """Names of the fields that prevent an on-chain check, in fixed order."""
    missing = []
    if artifact.confirmed is not True:
        missing.append("confirmed")
    if artifact.header_hash is None:
        missing.append("header_hash")
    if artifact.coin_id is None:
        missing.append("coin_id")
    return missing


def find_commitment_coin(
    records: List[CoinRecord],
    coin_id: str,
) -> Optional[CoinRecord]:
    """Return the first record whose parent coin is coin_id (case-sensitive)."""
    for record in records:
        parent = record.parent_coin_info
        if parent and strip_hex_prefix(parent) == coin_id:
            return record
    return None


class ChainAnchorVerifier:
    """Verify a proof artifact against the coin and block indexes.

    Args:
        index: Coin/block index to query.
        clock: Returns the current unix time in seconds.
    """

    def __init__(self, index: ChainIndex, clock: Clock) -> None:
        self._index = index
        self._clock = clock

    async def verify(self, artifact: ProofArtifact) -> VerificationOutcome:
        if not artifact.is_confirmed:
            missing = missing_chain_fields(artifact)
            return VerificationOutcome.failure(
                _STEP,
                f"Cannot verify on-chain: missing or invalid fields ({', '.join(missing)})",
                FailureReason.MISSING_DATA,
            )

        try:
            return await self._verify_confirmed(artifact)
        except ChainIndexError as e:
            logger.warning("On-chain lookup failed for root %s: %s", artifact.root_hash, e)
            return VerificationOutcome.failure(
                _STEP,
                f"Error verifying on-chain: {e}",
                FailureReason.API_ERROR,
            )
        except Exception as e:
            logger.exception("Unexpected error during on-chain lookup for root %s", artifact.root_hash)
            return VerificationOutcome.failure(
                _STEP,
                f"Error verifying on-chain: {type(e).__name__}: {e}",
                FailureReason.API_ERROR,
            )

    async def _verify_confirmed(self, artifact: ProofArtifact) -> VerificationOutcome:
        # Preconditions checked by verify()
        coin_id = artifact.coin_id
        header_hash = artifact.header_hash

        records = await self._index.get_coin_records_by_hint(
            artifact.root_hash, include_spent_coins=True
        )
        coin = find_commitment_coin(records, coin_id)
        if coin is None:
            return VerificationOutcome.failure(
                _STEP,
                f"Coin ID {coin_id} not found in coinset for root hash {artifact.root_hash}",
                FailureReason.INVALID_DATA,
            )

        block = await self._index.get_block_record_by_height(coin.confirmed_block_index)
        if strip_hex_prefix(block.header_hash) != strip_hex_prefix(header_hash):
            return VerificationOutcome.failure(
                _STEP,
                f"Header hash mismatch: proof header hash ({header_hash}) "
                f"does not match block header hash ({block.header_hash})",
                FailureReason.INVALID_DATA,
            )

        elapsed = int(self._clock()) - coin.timestamp
        time_ago = format_time_delta(elapsed)
        logger.info(
            "Coin %s anchored in block %d (%s)",
            coin_id, coin.confirmed_block_index, time_ago,
        )
        return VerificationOutcome.success(
            _STEP,
            f"Proof fully verified on-chain: coin ID {coin_id} found in block "
            f"{coin.confirmed_block_index} with matching header hash and merkle root. "
            f"File was included in block {time_ago}.",
            timestamp=coin.timestamp,
            block_index=coin.confirmed_block_index,
        )
